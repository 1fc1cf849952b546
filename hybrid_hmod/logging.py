from __future__ import annotations

import os
import sys
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger

DEFAULT_LOG_DIR = Path(
    os.environ.get(
        "HYBRID_HMOD_LOG_DIR",
        Path.home() / ".local" / "state" / "hybrid-hmod" / "logs",
    )
)

# Extra fields every record is guaranteed to carry
DEFAULT_EXTRA = {"job_id": "-", "tags": [], "source": "APP"}


def setup_logging(
    *,
    debug: bool = False,
    trace: bool = False,
    log_dir: Path | None = None,
    file_logging: bool = True,
) -> Logger:
    """
    Setup console and file logging for a build run.

    Logging Tiers:
    - ERROR: Build failures (bad dump, missing asset, failed stage)
    - SUCCESS/INFO: Stage progress shown to the user
    - DEBUG: Stage internals, archive statistics
    - TRACE: One line per archive entry and per patched file

    Log Files:
    - operations.log: INFO+ events (7 day retention)
    - debug.log: DEBUG+ events when --debug or --trace is enabled (3 day retention)

    Args:
        debug: Enable DEBUG level logging
        trace: Enable TRACE level logging (very verbose)
        log_dir: Custom log directory (defaults to ~/.local/state/hybrid-hmod/logs)
        file_logging: Write log files in addition to the console
    """
    logger.remove()
    logger.configure(extra=DEFAULT_EXTRA)

    if trace:
        console_level = "TRACE"
    elif debug:
        console_level = "DEBUG"
    else:
        console_level = "INFO"

    # SINK 1: Console (stderr) - User-facing
    logger.add(
        sys.stderr,
        level=console_level,
        backtrace=False,
        diagnose=False,
        colorize=True,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[source]: <10}</cyan> | "
            "{message}"
        ),
    )

    if not file_logging:
        return logger

    log_dir = log_dir or DEFAULT_LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    # SINK 2: Operations Log - Important events only (INFO+)
    logger.add(
        log_dir / "operations.log",
        level="INFO",
        rotation="5 MB",
        retention="7 days",
        compression="zip",
        backtrace=False,
        diagnose=False,
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{extra[source]: <10} | "
            "{extra[job_id]: <20} | "
            "{message}"
        ),
    )

    # SINK 3: Debug Log - Detailed diagnostics (DEBUG+ when debug=True)
    if debug or trace:
        logger.add(
            log_dir / "debug.log",
            level="TRACE" if trace else "DEBUG",
            rotation="10 MB",
            retention="3 days",
            compression="zip",
            backtrace=True,
            diagnose=True,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{extra[source]: <10} | "
                "{extra[job_id]: <20} | "
                "{extra[tags]} | "
                "{message}"
            ),
        )

    return logger


@contextmanager
def operation_context(operation: str, **details):
    """
    Context manager for tracking a build step with automatic timing.

    Logs the step start, completion and failure with its duration.

    Args:
        operation: Operation name (e.g., "extract", "build")
        **details: Operation-specific details to log

    Yields:
        Logger bound with job_id and operation context

    Example:
        with operation_context("build", dump=dump_path.name) as log:
            log.info("Copying the NESC dump files to the HMOD folder...")
    """
    job_id = f"{operation}-{uuid.uuid4().hex[:8]}"

    with logger.contextualize(job_id=job_id, operation=operation, **details):
        start_time = time.time()
        log = logger.bind(source=operation, job_id=job_id, tags=[operation])

        log.debug(f"{operation.capitalize()} started", **details)

        try:
            yield log
            duration = time.time() - start_time
            log.debug(
                f"{operation.capitalize()} completed", duration_seconds=round(duration, 2)
            )
        except Exception as e:
            duration = time.time() - start_time
            log.error(
                f"{operation.capitalize()} failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=round(duration, 2),
            )
            raise


class LoggerFactory:
    """
    Factory for creating component loggers with automatic context.
    """

    @staticmethod
    def for_archive() -> Logger:
        """Logger for dump archive decoding."""
        return logger.bind(source="archive", tags=["archive"])

    @staticmethod
    def for_assembly(**details) -> Logger:
        """Logger for image assembly stages."""
        return logger.bind(source="assembly", tags=["assembly"], **details)

    @staticmethod
    def for_cli() -> Logger:
        """Logger for console progress reporting."""
        return logger.bind(source="cli", tags=["cli"])
