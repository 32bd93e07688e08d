"""
@file: api_client.py
@description:
Async client for the Cloude HTTP API, mirroring what the web frontend does:
list, upload, rename, move and delete files, manage folders and read the
storage usage, all with the user's Supabase access token.

Key features:
- Request de-duplication: identical listings requested within one second
  share a single HTTP request (see RequestCache)
- Retries: listings are retried on transport errors with exponential back-off
- Cache invalidation: successful mutations clear the listing cache

@dependencies:
- httpx: For async HTTP requests
- tenacity: For retry mechanisms
- cloude.client.request_cache: For de-duplication
- cloude.core.logger: For structured logging
"""

import os
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from cloude.client.request_cache import DEFAULT_WINDOW_SECONDS, RequestCache
from cloude.core.logger import setup_logger

# Create a component-specific logger
logger = setup_logger("cloude.client")

DEFAULT_API_URL = os.getenv("CLOUDE_API_URL", "http://localhost:5000/api")
DEFAULT_REQUEST_TIMEOUT = 30.0


class CloudeAPIError(Exception):
    """Non-2xx response from the Cloude API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"API error with status {response.status_code}"

    if isinstance(body, dict):
        for key in ("detail", "error", "message"):
            if body.get(key):
                return str(body[key])
    return f"API error with status {response.status_code}"


class CloudeClient:
    """
    Client bound to one user's access token.

    Usage:
        async with CloudeClient(token) as client:
            items = await client.list_files()
            await client.upload_file("notes.txt", b"hello", "text/plain")
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        *,
        cache: Optional[RequestCache] = None,
        dedup_window: float = DEFAULT_WINDOW_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.token = token
        self.cache = cache if cache is not None else RequestCache(window=dedup_window)
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/",
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "CloudeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._http.request(method, path, **kwargs)
        if response.is_error:
            message = _error_message(response)
            logger.error(f"{method} {path} failed with status {response.status_code}: {message}")
            raise CloudeAPIError(response.status_code, message)
        return response.json()

    def listing_key(self, folder_id: Optional[str]) -> str:
        return f"files-{folder_id or 'root'}-{self.token[:10]}"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _fetch_files(self, folder_id: Optional[str]) -> List[Dict[str, Any]]:
        params = {"folderId": folder_id} if folder_id else None
        body = await self._request("GET", "files", params=params)
        return body.get("files") or []

    async def list_files(self, folder_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        List a folder's sub-folders and files (the root when folder_id is None).

        Concurrent or closely repeated calls for the same folder share one request.
        """
        key = self.listing_key(folder_id)
        if key in self.cache:
            logger.debug(f"Using cached request for: {key}")
        return await self.cache.run(key, lambda: self._fetch_files(folder_id))

    async def upload_file(
        self,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        folder_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Upload a file; returns the stored file's metadata.
        """
        data = {"folderId": folder_id} if folder_id else None
        body = await self._request(
            "POST",
            "files/upload",
            files={"file": (filename, content, content_type)},
            data=data,
        )
        self.cache.clear()
        logger.info(f"Upload successful: {filename}")
        return body["file"]

    async def rename_file(self, file_id: str, new_name: str) -> Dict[str, Any]:
        body = await self._request("PUT", f"files/{file_id}", json={"name": new_name})
        self.cache.clear()
        return body["file"]

    async def move_file(self, file_id: str, folder_id: Optional[str]) -> Dict[str, Any]:
        body = await self._request("PUT", f"files/{file_id}/move", json={"folderId": folder_id})
        self.cache.clear()
        return body["file"]

    async def delete_file(self, file_id: str) -> None:
        await self._request("DELETE", f"files/{file_id}")
        self.cache.clear()

    async def download_url(self, file_id: str) -> str:
        body = await self._request("GET", f"files/{file_id}/download")
        return body["url"]

    async def storage_usage(self) -> Dict[str, Any]:
        return await self._request("GET", "files/storage")

    async def create_folder(self, name: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        body = await self._request("POST", "folders", json={"name": name, "parentId": parent_id})
        self.cache.clear()
        return body["folder"]

    async def delete_folder(self, folder_id: str) -> Dict[str, int]:
        body = await self._request("DELETE", f"folders/{folder_id}")
        self.cache.clear()
        return body["deleted"]
