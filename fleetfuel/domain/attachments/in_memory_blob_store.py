import uuid

from fleetfuel.core.errors import NotFoundError

from .blob_store import UploadedFile


class InMemoryBlobStore:
    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}

    def put(self, request_id: str, file: UploadedFile) -> str:
        url = f"memory://{request_id}/{uuid.uuid4().hex}"
        self._blobs[url] = file.content
        return url

    def get(self, url: str) -> bytes:
        try:
            return self._blobs[url]
        except KeyError as exc:
            raise NotFoundError("Attachment", url) from exc

    def delete(self, url: str) -> None:
        self._blobs.pop(url, None)

    def __len__(self) -> int:
        return len(self._blobs)
