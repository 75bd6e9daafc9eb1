"""Field selection presets and environment-driven settings."""

from httplog.config.fields import Config, default_req_res_config, default_response_only_config
from httplog.config.settings import HTTPLogSettings

__all__ = [
    "Config",
    "HTTPLogSettings",
    "default_req_res_config",
    "default_response_only_config",
]
