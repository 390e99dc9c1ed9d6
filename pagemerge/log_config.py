import logging.config

from pagemerge.config import settings

_JSON_FORMAT = (
    '{"time": "%(asctime)s", "level": "%(levelname)s", '
    '"logger": "%(name)s", "message": "%(message)s"}'
)


def configure_logging(level: str | None = None, stream: str = "ext://sys.stderr") -> None:
    """Install the JSON-line console handler on the root logger.

    Logs go to stderr by default so that the CLI can keep stdout for the
    rendered Markdown.
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"format": _JSON_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": stream,
                },
            },
            "root": {"level": level or settings.log_level, "handlers": ["console"]},
        }
    )
