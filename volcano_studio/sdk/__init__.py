"""
SDK for Volcano Studio.

Provides the HTTP client used to reach lookup upstreams.
"""

from .upstream_client import UpstreamClient

__all__ = ["UpstreamClient"]
