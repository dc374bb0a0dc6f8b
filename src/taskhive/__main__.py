"""Run the API server: ``python -m taskhive``."""

from __future__ import annotations

import uvicorn

from taskhive.config import Settings
from taskhive.entrypoints.api.app import create_app
from taskhive.logging_config import configure_logging


def main() -> None:
    """Configure logging from the environment and serve the API."""
    settings = Settings.from_env()
    configure_logging(settings.log_level, json_output=settings.log_json)

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
