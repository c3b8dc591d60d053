"""This module handles storing justification attachments."""
from .blob_store import BlobStore, UploadedFile
from .file_system_blob_store import FilesystemBlobStore
from .http_blob_store import HttpBlobStore
from .in_memory_blob_store import InMemoryBlobStore
from .repository import AttachmentRepository, AttachmentRepositoryProtocol
from .validation import sanitize_filename, validate_upload
