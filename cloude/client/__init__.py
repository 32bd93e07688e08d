"""
Client Package for the Cloude Backend.

An async HTTP client for the Cloude API, with de-duplication of identical
listing requests issued within a short window.
"""

from cloude.client.api_client import CloudeAPIError, CloudeClient
from cloude.client.request_cache import RequestCache

__all__ = ["CloudeAPIError", "CloudeClient", "RequestCache"]
