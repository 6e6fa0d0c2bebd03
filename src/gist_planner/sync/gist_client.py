# src/gist_planner/sync/gist_client.py

from __future__ import annotations

"""
GitHub Gist as the remote document store.

The planner document is one file inside a gist:
- fetch: GET /gists/{id} with If-None-Match (304 -> not modified)
- write: PATCH /gists/{id} with the new file content

Gist PATCH has no compare-and-swap, so a guarded write first reads the gist's
head commit and refuses to write when it moved past the caller's version token.
This narrows the race window; it does not close it.
"""

import logging
from typing import Any

import httpx

from ..core.errors import RemoteStoreError, WriteConflictError
from ..core.ports import FetchResponse, WriteResponse

logger = logging.getLogger(__name__)

GH_API = "https://api.github.com"
GH_API_VERSION = "2022-11-28"


def _head_commit(payload: Any) -> str | None:
    try:
        history = payload.get("history") or []
        version = history[0].get("version") if history else None
    except (AttributeError, IndexError, TypeError):
        return None
    return str(version) if version else None


class GistDocumentStore:
    def __init__(
        self,
        *,
        token: str | None,
        gist_id: str,
        file_name: str = "planner.json",
        api_url: str = GH_API,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._token = (token or "").strip() or None
        self._gist_id = (gist_id or "").strip()
        self._file_name = file_name
        self._api_url = api_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=min(5.0, timeout)),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> GistDocumentStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ---- low-level helpers ----

    def _url(self) -> str:
        if not self._gist_id:
            raise RemoteStoreError("gist id is not configured")
        return f"{self._api_url}/gists/{self._gist_id}"

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GH_API_VERSION,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        if extra:
            headers.update(extra)
        return headers

    async def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        url = self._url()
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Gist %s failed: %s", method, e)
            raise RemoteStoreError(f"gist {method.lower()} failed: {e}") from e

    @staticmethod
    def _json(res: httpx.Response) -> Any:
        try:
            return res.json()
        except ValueError as e:
            raise RemoteStoreError("gist response is not JSON", status=res.status_code) from e

    def _file_content(self, payload: Any) -> str:
        files = payload.get("files") if isinstance(payload, dict) else None
        if not isinstance(files, dict):
            raise RemoteStoreError("gist response has no files")

        entry = files.get(self._file_name)
        if entry is None:
            wanted = self._file_name.lower()
            for name, candidate in files.items():
                if str(name).lower() == wanted:
                    entry = candidate
                    break

        if not isinstance(entry, dict) or entry.get("content") is None:
            raise RemoteStoreError(f"file {self._file_name} not found in gist")
        # Large files come back truncated; the document must be read whole.
        if entry.get("truncated"):
            raise RemoteStoreError(f"file {self._file_name} is truncated in the gist response")
        return str(entry["content"])

    # ---- RemoteDocumentStore ----

    async def fetch(self, validation_token: str | None = None) -> FetchResponse:
        extra = {"If-None-Match": validation_token} if validation_token else None
        res = await self._request("GET", headers=self._headers(extra))

        if res.status_code == 304:
            logger.debug("Gist not modified (etag=%s)", validation_token)
            return FetchResponse(not_modified=True, validation_token=validation_token)

        if not res.is_success:
            raise RemoteStoreError(f"gist load failed: {res.status_code}", status=res.status_code)

        payload = self._json(res)
        text = self._file_content(payload)
        etag = res.headers.get("ETag") or None
        commit = _head_commit(payload)
        logger.debug("Gist fetched etag=%s commit=%s bytes=%d", etag, commit, len(text))
        return FetchResponse(not_modified=False, text=text, validation_token=etag, version_token=commit)

    async def current_version(self) -> str | None:
        res = await self._request("GET", headers=self._headers())
        if not res.is_success:
            raise RemoteStoreError(f"gist load failed: {res.status_code}", status=res.status_code)
        return _head_commit(self._json(res))

    async def write(self, text: str, version_token: str | None = None) -> WriteResponse:
        if version_token:
            head = await self.current_version()
            if head and head != version_token:
                logger.info("Gist moved on (expected=%s head=%s)", version_token, head)
                raise WriteConflictError(f"gist changed: expected {version_token}, found {head}")

        body = {"files": {self._file_name: {"content": text}}}
        res = await self._request(
            "PATCH",
            headers=self._headers({"Content-Type": "application/json"}),
            json=body,
        )

        if res.status_code in (409, 412):
            raise WriteConflictError(f"gist save conflict: {res.status_code}", status=res.status_code)
        if not res.is_success:
            raise RemoteStoreError(f"gist save failed: {res.status_code} {res.text}", status=res.status_code)

        commit = _head_commit(self._json(res))
        etag = res.headers.get("ETag") or None
        logger.info("Gist saved commit=%s", commit)
        return WriteResponse(version_token=commit, validation_token=etag)
