"""Configuration model exports.

    from tardis.config.models import FrameworkConfig, ResolvedConfig
"""

from tardis.config.models.components import (
    CacheConfig,
    CacheModuleConfig,
    DBConfig,
    DBModuleConfig,
    MailConfig,
    MQConfig,
    MQModuleConfig,
    SearchConfig,
    SearchModuleConfig,
    WebClientConfig,
    WebServerConfig,
)
from tardis.config.models.framework import (
    AdvConfig,
    AppConfig,
    ConfCenterConfig,
    DocumentFormat,
    FrameworkConfig,
    LogConfig,
)
from tardis.config.models.resolved import ResolvedConfig
from tardis.config.models.sources import (
    ConfCenterDescriptor,
    ConfigSource,
    EnvironmentSource,
    LocalFileSource,
    RemoteDocumentSource,
)

__all__ = [
    "AdvConfig",
    "AppConfig",
    "CacheConfig",
    "CacheModuleConfig",
    "ConfCenterConfig",
    "ConfCenterDescriptor",
    "ConfigSource",
    "DBConfig",
    "DBModuleConfig",
    "DocumentFormat",
    "EnvironmentSource",
    "FrameworkConfig",
    "LocalFileSource",
    "LogConfig",
    "MailConfig",
    "MQConfig",
    "MQModuleConfig",
    "RemoteDocumentSource",
    "ResolvedConfig",
    "SearchConfig",
    "SearchModuleConfig",
    "WebClientConfig",
    "WebServerConfig",
]
