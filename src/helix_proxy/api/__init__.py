"""API package for the Helix proxy."""

from helix_proxy.api.app import create_app

__all__ = ["create_app"]
