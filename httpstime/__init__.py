"""Define log settings and such."""

import datetime
import logging.handlers
from pathlib import Path

from colorlog import ColoredFormatter
from uvicorn.config import LOGGING_CONFIG

# Format configuration.
fmt = "%(asctime)s - %(name)s %(levelname)s: %(message)s"
datefmt = "%H:%M:%S"


def setup_logging(debug: bool = False, log_dir: Path | None = None) -> None:
    """Log to the terminal, and to rotating files when a log directory is given."""
    # Console handler prints to terminal.
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(ColoredFormatter(fmt=f"%(log_color)s{fmt}", datefmt=datefmt))

    handlers: list[logging.Handler] = [console_handler]

    if log_dir is not None:
        now = datetime.datetime.now(tz=datetime.UTC)
        log_file = log_dir / f"{now.strftime('%d-%m-%Y')}.log"
        Path.mkdir(log_dir, exist_ok=True, parents=True)

        # File handler rotates logs every 5 MB.
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=5 * (2**20),
            backupCount=10,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    # Remove old loggers, if any.
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    # Setup new logging configuration.
    logging.basicConfig(
        format=fmt,
        datefmt=datefmt,
        level=logging.DEBUG,
        handlers=handlers,
    )

    # Configure uvicorn loggers.
    LOGGING_CONFIG["loggers"]["uvicorn.access"]["propagate"] = True
    LOGGING_CONFIG["loggers"]["uvicorn.access"].pop("handlers", None)
