"""Environment-based httplog configuration."""

import os
from dataclasses import dataclass, field

from httplog.compact import DEFAULT_MAX_VALUE_LENGTH, CompactionPolicy
from httplog.config.fields import Config, default_req_res_config, default_response_only_config
from httplog.errors import ConfigurationError

_PRESETS = {
    "req_res": default_req_res_config,
    "response_only": default_response_only_config,
}
_SINK_LEVELS = frozenset({"info", "debug"})


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer", variable=name, value=raw) from None


@dataclass(frozen=True)
class HTTPLogSettings:
    """Immutable httplog configuration read from environment variables."""

    app_name: str = field(default_factory=lambda: os.getenv("HTTPLOG_APP_NAME", "httplog"))
    log_level: str = field(default_factory=lambda: os.getenv("HTTPLOG_LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: os.getenv("HTTPLOG_LOG_FORMAT", "json"))
    preset: str = field(default_factory=lambda: os.getenv("HTTPLOG_PRESET", "req_res"))
    compaction: str = field(default_factory=lambda: os.getenv("HTTPLOG_COMPACTION", "elide"))
    max_arg_length: int = field(
        default_factory=lambda: _env_int("HTTPLOG_MAX_ARG_LENGTH", DEFAULT_MAX_VALUE_LENGTH)
    )
    sink_level: str = field(default_factory=lambda: os.getenv("HTTPLOG_SINK_LEVEL", "info"))

    def __post_init__(self) -> None:
        object.__setattr__(self, "log_level", self.log_level.upper())
        object.__setattr__(self, "preset", self.preset.lower())
        object.__setattr__(self, "compaction", self.compaction.lower())
        object.__setattr__(self, "sink_level", self.sink_level.lower())

        if self.preset not in _PRESETS:
            raise ConfigurationError(
                f"Unknown preset {self.preset!r}", preset=self.preset, choices=sorted(_PRESETS)
            )
        try:
            CompactionPolicy(self.compaction)
        except ValueError:
            raise ConfigurationError(
                f"Unknown compaction policy {self.compaction!r}",
                compaction=self.compaction,
                choices=[policy.value for policy in CompactionPolicy],
            ) from None
        if self.max_arg_length <= 0:
            raise ConfigurationError(
                "max_arg_length must be positive", max_arg_length=self.max_arg_length
            )
        if self.sink_level not in _SINK_LEVELS:
            raise ConfigurationError(
                f"Unknown sink level {self.sink_level!r}",
                sink_level=self.sink_level,
                choices=sorted(_SINK_LEVELS),
            )

    @property
    def compaction_policy(self) -> CompactionPolicy:
        return CompactionPolicy(self.compaction)

    def to_config(self) -> Config:
        """Return the field configuration named by ``preset``."""
        return _PRESETS[self.preset]()
