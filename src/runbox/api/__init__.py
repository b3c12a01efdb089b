"""HTTP surface for runbox."""

from runbox.api.app import create_app

__all__ = ["create_app"]
