"""Query-string compaction for log-safe argument fields."""

from enum import Enum

DEFAULT_MAX_VALUE_LENGTH = 48

_ELLIPSIS = "..."
_PLACEHOLDER = "(...)"


class CompactionPolicy(str, Enum):
    """How argument values are rendered once keys are preserved.

    * ``ELIDE`` replaces every value with ``...``.
    * ``PLACEHOLDER`` replaces every value with ``(...)``.
    * ``TRUNCATE`` keeps values, cutting the ones longer than the max length.
    """

    ELIDE = "elide"
    PLACEHOLDER = "placeholder"
    TRUNCATE = "truncate"


def _compact_value(value: str, policy: CompactionPolicy, max_length: int) -> str:
    if policy is CompactionPolicy.PLACEHOLDER:
        return _PLACEHOLDER
    if policy is CompactionPolicy.TRUNCATE:
        if len(value) > max_length:
            return value[:max_length] + _ELLIPSIS
        return value
    return _ELLIPSIS


def format_compact_args(
    raw_query: str,
    policy: CompactionPolicy = CompactionPolicy.ELIDE,
    max_length: int = DEFAULT_MAX_VALUE_LENGTH,
) -> str:
    """Return ``raw_query`` with keys kept and values compacted.

    Elements are split on the first ``=``; an element without one is kept as a
    bare key and an element with an empty key is dropped. Returns an empty
    string when nothing usable is left.
    """
    policy = CompactionPolicy(policy)
    compacted: list[str] = []
    for element in raw_query.split("&"):
        key, sep, value = element.partition("=")
        if not key:
            continue
        if not sep:
            compacted.append(key)
            continue
        compacted.append(f"{key}={_compact_value(value, policy, max_length)}")
    return "&".join(compacted)
