# src/stagegraph/core/logging.py
"""Logging setup for hosts that embed the graph builder.

Library modules only ever call structlog.get_logger(__name__); nothing here
runs on import. A host that wants stagegraph's output formatted calls
configure_logging once with its StageGraphSettings. structlog events and
plain stdlib records then share one stdout handler, so a host service that
logs through logging.getLogger still gets matching lines.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

if TYPE_CHECKING:
    from stagegraph.core.config import LoggingSettings, StageGraphSettings

# Logger the visitor's per-event dump is written to
VISITOR_LOGGER = "stagegraph.engine.visitor"

# Libraries stagegraph loads that chatter at DEBUG; kept at WARNING or above
_QUIET_LOGGERS: tuple[str, ...] = ("dynaconf", "networkx")


def _drop_formatter_keys(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    # ProcessorFormatter bookkeeping, never useful in a rendered line
    event_dict.pop("_record", None)
    event_dict.pop("_from_structlog", None)
    return event_dict


def _render_chain(settings: LoggingSettings) -> list[Any]:
    if settings.json_output:
        return [
            _drop_formatter_keys,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    return [_drop_formatter_keys, structlog.dev.ConsoleRenderer(colors=False)]


def configure_logging(settings: StageGraphSettings, *, stream: TextIO | None = None) -> logging.Handler:
    """Install stagegraph's log format on the root logger.

    Args:
        settings: Validated settings. ``settings.logging`` picks the level and
            renderer; ``node_dump_enabled`` opens the visitor logger at DEBUG
            so its event dump shows up whatever the root level is.
        stream: Where lines go. Defaults to sys.stdout at call time.

    Returns:
        The handler now attached to the root logger, replacing any others.
    """
    root_level = logging.getLevelNamesMapping()[settings.logging.level]

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=[
            # Drops events below the emitting logger's effective level before any work
            structlog.stdlib.filter_by_level,
            *pre_chain,
            ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(
        ProcessorFormatter(
            processors=_render_chain(settings.logging),
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(root_level)

    visitor_logger = logging.getLogger(VISITOR_LOGGER)
    visitor_logger.setLevel(logging.DEBUG if settings.node_dump_enabled else logging.NOTSET)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))

    return handler
