"""Logging setup shared by the API and the maintenance scripts."""
import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int = logging.INFO) -> None:
    """
    Configure root logging once.

    `logging.basicConfig` is a no-op when handlers are already installed (e.g. by
    uvicorn or pytest), so calling this from `create_app` is safe in every context.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
