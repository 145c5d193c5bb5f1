"""Explicit observability context passed through the runtime call chain.

Architecture:
    Pollers, pagers and stream walkers accept a TraceContext instead of
    reaching for a module-global logger. The context carries the logger to
    use and a set of attributes (operation id, shard path, ...) that are
    attached to every structured log record emitted under it. Child
    contexts extend the attributes without mutating the parent.

Design Decisions:
    - Frozen dataclass: A context can be shared between tasks safely
    - Standard logging: Records stay compatible with any handler/formatter
    - Structured fields via ``extra``: Same convention as the telemetry
      helpers, so JSON formatters pick them up as top-level keys

See Also:
    - runtime.polling.telemetry: Poller log events
    - runtime.changefeed.telemetry: Walker log events
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

ROOT_LOGGER_NAME = "nimbus.sdk"

# Attribute names owned by logging.LogRecord; passing them in ``extra``
# raises KeyError, so colliding fields are prefixed.
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys() | {"message", "asctime"}
)


def _safe_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {(f"attr_{key}" if key in _RESERVED else key): value for key, value in fields.items()}


@dataclass(frozen=True)
class TraceContext:
    """Named logging scope with attached attributes.

    Attributes:
        name: Dotted scope name (e.g., "lro.poller")
        logger: Logger receiving the records
        attributes: Fields merged into every record emitted from this scope
    """

    name: str
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(ROOT_LOGGER_NAME))
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def default(cls, name: str, **attributes: Any) -> TraceContext:
        """Create a context logging under ``nimbus.sdk.<name>``."""
        return cls(
            name=name,
            logger=logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}"),
            attributes=dict(attributes),
        )

    def child(self, name: str, **attributes: Any) -> TraceContext:
        """Derive a nested scope that inherits logger and attributes.

        Args:
            name: Name of the nested scope, appended to this scope's name
            **attributes: Extra attributes for the nested scope

        Returns:
            New TraceContext; this context is left untouched
        """
        merged = {**self.attributes, **attributes}
        return TraceContext(name=f"{self.name}.{name}", logger=self.logger, attributes=merged)

    def log(self, level: int, event: str, **fields: Any) -> None:
        """Emit a structured record named ``event``."""
        if not self.logger.isEnabledFor(level):
            return
        extra = _safe_fields({"trace": self.name, **self.attributes, **fields})
        self.logger.log(level, event, extra=extra)

    def debug(self, event: str, **fields: Any) -> None:
        self.log(logging.DEBUG, event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self.log(logging.INFO, event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self.log(logging.WARNING, event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self.log(logging.ERROR, event, **fields)


def resolve_context(context: TraceContext | None, name: str, **attributes: Any) -> TraceContext:
    """Return a child of ``context`` or a default context when none is given."""
    if context is None:
        return TraceContext.default(name, **attributes)
    return context.child(name, **attributes)
