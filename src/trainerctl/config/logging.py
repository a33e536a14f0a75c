"""structlog setup for the CLI.

Every record, from structlog or from stdlib ``logging.getLogger`` calls,
goes to stderr through one ``ProcessorFormatter``: a console renderer by
default, JSON lines with ``--log-json``. The acting trainer id is bound
as context so each line says whose studio it came from.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Third-party loggers that stay at WARNING whatever the CLI flags say.
_QUIET_LOGGERS = ("alembic", "sqlalchemy.engine")


def _level(*, verbose: bool, log_json: bool) -> int:
    if verbose:
        return logging.DEBUG
    # JSON output is for collecting the activity trail, which logs at INFO.
    if log_json:
        return logging.INFO
    return logging.WARNING


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    trainer_id: str | None = None,
) -> None:
    """Route all logging to stderr.

    Args:
        verbose: Show DEBUG records from trainerctl loggers.
        log_json: Render JSON lines and include INFO records.
        trainer_id: Bound to every record when given.
    """
    pre_chain = _pre_chain()
    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.WARNING)

    logging.getLogger("trainerctl").setLevel(_level(verbose=verbose, log_json=log_json))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.contextvars.clear_contextvars()
    if trainer_id:
        structlog.contextvars.bind_contextvars(trainer_id=trainer_id)
