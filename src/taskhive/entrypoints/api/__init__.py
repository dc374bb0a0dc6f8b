"""REST API entrypoint."""

from taskhive.entrypoints.api.app import create_app

__all__ = ["create_app"]
