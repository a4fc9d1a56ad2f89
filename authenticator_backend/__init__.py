"""
Authenticator backend package: a small Flask JSON API over the authenticator core.
"""

from .app import create_app

__all__ = ["create_app"]
