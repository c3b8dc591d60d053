from fleetfuel.core.errors import ValidationError

from .blob_store import UploadedFile

DEFAULT_ALLOWED_TYPES = ("image/jpeg", "image/png", "application/pdf")
DEFAULT_MAX_BYTES = 5 * 1024 * 1024

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "application/pdf": "pdf",
}


def sanitize_filename(filename: str) -> str:
    name = str(filename).replace("\\", "/").split("/")[-1].strip()
    if not name:
        return "file"
    safe = []
    for ch in name:
        if ch.isalnum() or ch in {" ", ".", "_", "-"}:
            safe.append(ch)
        else:
            safe.append("_")
    out = "".join(safe).strip(" .")
    return (out or "file")[:200]


def extension_for(file: UploadedFile) -> str:
    if "." in file.filename:
        ext = sanitize_filename(file.filename).rsplit(".", 1)[-1].lower()
        if ext:
            return ext
    return _EXTENSIONS.get(file.content_type, "bin")


def validate_upload(
    file: UploadedFile,
    *,
    allowed_types: tuple[str, ...] | list[str] = DEFAULT_ALLOWED_TYPES,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> None:
    if file.content_type not in allowed_types:
        raise ValidationError(f"{file.filename}: unsupported file type '{file.content_type}'")
    if file.size == 0:
        raise ValidationError(f"{file.filename}: file is empty")
    if file.size > max_bytes:
        raise ValidationError(f"{file.filename}: file too large (max {max_bytes // (1024 * 1024)} MB)")
