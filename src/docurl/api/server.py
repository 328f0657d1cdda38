"""Process entry point for the docurl API."""

from __future__ import annotations

import logging

import uvicorn

from docurl.api.app import create_app
from docurl.config import get_settings


def main() -> None:
    """Entry point for ``python -m docurl.api.server``."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port, log_config=None)


if __name__ == "__main__":
    main()
