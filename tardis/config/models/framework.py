"""Framework configuration root model.

The ``fw`` branch of a configuration document is validated into
FrameworkConfig. A document without an ``fw`` branch yields an all-defaults
instance.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from tardis.config.models.components import (
    CacheConfig,
    DBConfig,
    MailConfig,
    MQConfig,
    SearchConfig,
    WebClientConfig,
    WebServerConfig,
)

DocumentFormat = Literal["toml", "json", "yaml"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class AppConfig(BaseModel):
    """Application identity."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default="", description="Application id, required with a config center")
    name: str = Field(default="Tardis Application", description="Application name")
    desc: str = Field(default="", description="Application description")
    version: str = Field(default="0.0.1", description="Application version")
    url: str = Field(default="", description="Application homepage")
    email: str = Field(default="", description="Maintainer contact")
    inst: str = Field(default="", description="Instance id")


class LogConfig(BaseModel):
    """Logging configuration applied by process bootstrap."""

    model_config = ConfigDict(extra="ignore")

    level: LogLevel = Field(default="INFO", description="Minimum log level")
    format: Literal["json", "console"] = Field(default="json", description="Renderer")
    redact_secrets: bool = Field(default=True, description="Redact credentials and salts")


class ConfCenterConfig(BaseModel):
    """Remote configuration center connection.

    Presence of this section in ``fw`` enables the remote layers and the
    reload watcher.
    """

    model_config = ConfigDict(extra="ignore")

    kind: str = Field(default="nacos", description="Backend kind, e.g. nacos")
    url: str = Field(default="", description="Backend base URL, e.g. http://host:8848/nacos")
    username: str = Field(default="", description="Login user")
    password: SecretStr = Field(default=SecretStr(""), description="Login password")
    group: str = Field(default="DEFAULT_GROUP", description="Backend namespace group")
    format: str = Field(default="toml", description="Remote document format")
    namespace: str | None = Field(default=None, description="Backend tenant namespace")
    poll_interval_secs: float = Field(
        default=30.0,
        gt=0,
        description="Fingerprint polling interval for hot-reload",
    )
    timeout_secs: float = Field(
        default=10.0,
        gt=0,
        description="Timeout applied to every remote call",
    )


class AdvConfig(BaseModel):
    """Advanced settings."""

    model_config = ConfigDict(extra="ignore")

    backtrace: bool = Field(default=False, description="Include tracebacks in error logs")
    salt: str = Field(
        default="",
        description="16-byte symmetric key for ENC(...) values (empty = no decryption)",
    )


class FrameworkConfig(BaseModel):
    """Strongly typed framework configuration (the ``fw`` branch)."""

    model_config = ConfigDict(extra="ignore")

    app: AppConfig = Field(default_factory=AppConfig)
    web_server: WebServerConfig = Field(default_factory=WebServerConfig)
    web_client: WebClientConfig = Field(default_factory=WebClientConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    db: DBConfig = Field(default_factory=DBConfig)
    mq: MQConfig = Field(default_factory=MQConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    mail: MailConfig = Field(default_factory=MailConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    conf_center: ConfCenterConfig | None = Field(
        default=None,
        description="Remote configuration center (None = local and env only)",
    )
    adv: AdvConfig = Field(default_factory=AdvConfig)
