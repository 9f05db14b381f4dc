"""Flask JSON API exposing the in-memory expense tracker."""

from .app import create_app

__all__ = ["create_app"]
