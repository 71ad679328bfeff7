import os
import logging
import sys
import uvicorn
from somapi_backend.settings import settings
from somapi_backend.server import startup_logic


class ColoredFormatter(logging.Formatter):
    """Formatter that colours timestamp and level on a terminal."""

    grey = "\x1b[38;21m"
    green = "\x1b[32m"
    yellow = "\x1b[33m"
    red = "\x1b[31m"
    bold_red = "\x1b[31;1m"
    orange = "\x1b[38;5;208m"
    reset = "\x1b[0m"

    COLORS = {
        logging.DEBUG: grey,
        logging.INFO: green,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red
    }

    def format(self, record):
        formatted = super().format(record)

        if sys.stdout.isatty():
            log_color = self.COLORS.get(record.levelno, self.grey)

            # "timestamp - LEVEL - rest"
            parts = formatted.split(' - ', 2)
            if len(parts) == 3:
                timestamp, level, rest = parts
                formatted = f"{self.orange}{timestamp}{self.reset} - {log_color}{level}{self.reset} - {rest}"

        return formatted


def setup_logging(level: str = "WARNING"):
    """Send all logging through one coloured stdout handler."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter(
        '%(asctime)s - %(levelname)-8s - %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    # Per-row skips are logged at DEBUG, SOMAPI_LOG_LEVEL=DEBUG shows them
    logging.getLogger("somapi_backend").setLevel(getattr(logging, level, logging.WARNING))


def uvicorn_log_config(uvicorn_log_level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "colored": {
                "()": ColoredFormatter,
                "fmt": "%(asctime)s - %(levelname)-8s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "colored",
                "stream": "ext://sys.stdout"
            },
        },
        "loggers": {
            "uvicorn": {
                "handlers": ["default"],
                "level": uvicorn_log_level.upper(),
                "propagate": False
            },
            "uvicorn.error": {
                "handlers": ["default"],
                "level": uvicorn_log_level.upper(),
                "propagate": False
            },
            "uvicorn.access": {
                "handlers": ["default"],
                "level": "INFO" if uvicorn_log_level != "error" else "WARNING",
                "propagate": False
            }
        }
    }


if __name__ == "__main__":
    setup_logging(os.environ.get("SOMAPI_LOG_LEVEL", "WARNING").upper())

    uvicorn_log_level = os.environ.get("UVICORN_LOG_LEVEL", "info").lower()

    print(f"Starting SOM API ({settings.DEBUG_MODE}), Uvicorn log level: {uvicorn_log_level}")

    if settings.DEBUG_MODE != "production":
        startup_logic()

    uvicorn.run(
        "somapi_backend.server:app",
        host=os.environ.get("SOMAPI_HOST", "0.0.0.0"),
        port=int(os.environ.get("SOMAPI_PORT", "8000")),
        log_config=uvicorn_log_config(uvicorn_log_level),
        reload=settings.DEBUG_MODE != "production",
        workers=1
    )
