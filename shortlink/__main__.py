"""Run the shortlink service with uvicorn: ``python -m shortlink``."""

import uvicorn

from .core.config import get_settings
from .main import create_app, setup_logging


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
