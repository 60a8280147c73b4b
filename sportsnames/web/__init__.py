"""HTTP debug surface for the translation cache."""

from sportsnames.web.app import create_app

__all__ = ["create_app"]
