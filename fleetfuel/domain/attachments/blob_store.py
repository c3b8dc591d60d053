from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class BlobStore(Protocol):
    def put(self, request_id: str, file: UploadedFile) -> str:
        """Store the file under the request and return its URL"""
        ...

    def get(self, url: str) -> bytes:
        ...

    def delete(self, url: str) -> None:
        """Remove the blob; a missing one is not an error"""
        ...
