"""HTTP client package."""

from helix_proxy.http.client import HttpClient

__all__ = ["HttpClient"]
