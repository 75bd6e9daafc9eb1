"""Contracts consumed by the engine."""

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

Fields = Mapping[str, str]


@runtime_checkable
class FieldLogger(Protocol):
    """Structured logging sink the engine hands its records to.

    ``with_fields`` and ``with_error`` return a logger carrying the extra
    context, so calls can be chained; ``log`` emits one line.
    """

    def with_fields(self, fields: Fields) -> "FieldLogger": ...

    def with_error(self, exc: BaseException) -> "FieldLogger": ...

    def log(self, message: str) -> None: ...
