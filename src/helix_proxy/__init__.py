"""
helix-proxy: a caching, rate-limited read-through proxy for the Twitch Helix API.

Serves cached or stale data whenever the upstream or the request budget
cannot satisfy a live request.
"""

__version__ = "0.1.0"
