"""Prometheus metrics for configuration resolution and hot-reload."""

from prometheus_client import Counter, Histogram

# Resolution metrics
CONFIG_RESOLUTIONS = Counter(
    "tardis_config_resolutions_total",
    "Total number of configuration resolution passes",
    labelnames=["outcome"],
)

CONFIG_RESOLUTION_LATENCY = Histogram(
    "tardis_config_resolution_latency_seconds",
    "Configuration resolution latency in seconds",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Remote polling metrics
CONFIG_POLLS = Counter(
    "tardis_config_polls_total",
    "Total number of configuration center fingerprint polls",
    labelnames=["outcome"],
)

CONFIG_RELOADS = Counter(
    "tardis_config_reloads_total",
    "Total number of reloads triggered by a remote change",
    labelnames=["outcome"],
)

# Remote client metrics
CONF_CENTER_REQUESTS = Counter(
    "tardis_conf_center_requests_total",
    "Total number of requests sent to a configuration center",
    labelnames=["kind", "operation", "status"],
)
