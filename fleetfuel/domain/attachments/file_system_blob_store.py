import uuid
from pathlib import Path
from urllib.parse import unquote, urlparse

from fleetfuel.core.errors import NotFoundError, StoreError

from .blob_store import UploadedFile
from .validation import extension_for


class FilesystemBlobStore:
    """
    BlobStore backed by a local directory.

    Expected layout:
        <base_dir>/
          <request_id>/
            <random key>.<ext>
    """

    def __init__(self, *, base_dir: Path) -> None:
        self._base_dir = Path(base_dir).resolve()

    def put(self, request_id: str, file: UploadedFile) -> str:
        req_dir = self._base_dir / Path(request_id).name
        try:
            req_dir.mkdir(parents=True, exist_ok=True)
            path = req_dir / f"{uuid.uuid4().hex}.{extension_for(file)}"
            path.write_bytes(file.content)
        except OSError as exc:
            raise StoreError(f"Could not store attachment '{file.filename}': {exc}") from exc
        return path.as_uri()

    def get(self, url: str) -> bytes:
        path = self._path_for(url)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError("Attachment", url) from exc
        except OSError as exc:
            raise StoreError(f"Could not read attachment: {exc}") from exc

    def delete(self, url: str) -> None:
        try:
            self._path_for(url).unlink(missing_ok=True)
        except OSError as exc:
            raise StoreError(f"Could not remove attachment: {exc}") from exc

    def _path_for(self, url: str) -> Path:
        parsed = urlparse(url)
        if parsed.scheme != "file":
            raise NotFoundError("Attachment", url)
        path = Path(unquote(parsed.path)).resolve()
        # Only serve files that live under the store's own directory.
        if self._base_dir not in path.parents:
            raise NotFoundError("Attachment", url)
        return path
