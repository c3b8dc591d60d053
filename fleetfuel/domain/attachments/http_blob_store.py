"""Blob store that talks to an HTTP storage service (bucket-style API)."""

from __future__ import annotations

import uuid

import httpx

from fleetfuel.core.errors import NotFoundError, StoreError

from .blob_store import UploadedFile
from .validation import extension_for


class HttpBlobStore:
    """Store attachments through a storage service.

    The service is expected to accept ``PUT {base_url}/{request_id}/{name}``
    with the raw file body and answer with ``{"url": "..."}``; stored files
    are then fetched with a plain ``GET`` and removed with ``DELETE`` on that URL.
    """

    def __init__(self, base_url: str, client: httpx.Client | None = None, timeout: float = 30.0) -> None:
        """Create an HTTP blob store.

        Args:
            base_url: Base URL of the storage bucket (e.g. http://storage:8002/v1/blobs).
            client: Optional injected httpx client for testing / transport control.
            timeout: Per-request timeout in seconds.
        """
        self._base_url = base_url.rstrip('/')
        self._client = client
        self._timeout = timeout

    def put(self, request_id: str, file: UploadedFile) -> str:
        url = f'{self._base_url}/{request_id}/{uuid.uuid4().hex}.{extension_for(file)}'
        resp = self._send('PUT', url, content=file.content, headers={'content-type': file.content_type})
        try:
            return resp.json()['url']
        except (ValueError, KeyError) as exc:
            raise StoreError(f'Storage service returned an unexpected payload for {url}') from exc

    def get(self, url: str) -> bytes:
        resp = self._send('GET', url)
        return resp.content

    def delete(self, url: str) -> None:
        self._send('DELETE', url)

    def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            if self._client is not None:
                resp = self._client.request(method, url, timeout=self._timeout, **kwargs)
            else:
                with httpx.Client() as client:
                    resp = client.request(method, url, timeout=self._timeout, **kwargs)
        except httpx.HTTPError as exc:
            raise StoreError(f'Storage service unreachable: {exc}') from exc

        if resp.status_code == 404:
            # Missing on read, already gone on delete; a PUT 404 falls through to StoreError.
            if method == 'GET':
                raise NotFoundError('Attachment', url)
            if method == 'DELETE':
                return resp
        if resp.is_error:
            raise StoreError(f'Storage service answered {resp.status_code} for {method} {url}')
        return resp
