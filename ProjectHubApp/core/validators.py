"""Validation helpers for uploaded import files and numeric ranges."""

from typing import Any

import magic

from ProjectHubApp.core.exceptions import ValidationError

ALLOWED_IMPORT_MIME: set[str] = {
    "application/json",
    "text/plain",
}

def validate_file_size(file_obj: Any, max_mb: int = 10) -> None:
    """Ensure file size does not exceed max_mb megabytes."""
    if file_obj and file_obj.size > max_mb * 1024 * 1024:
        raise ValidationError(f"File exceeds {max_mb} MB limit.")

def _probe_mime(file_obj: Any) -> str | None:
    """Read initial bytes to detect MIME type using libmagic."""
    if not file_obj:
        return None
    header = file_obj.read(4096)
    file_obj.seek(0)
    return magic.from_buffer(header, mime=True)

def validate_import_mime(file_obj: Any) -> None:
    """Validate that an uploaded state export looks like JSON text."""
    mime = _probe_mime(file_obj)
    if mime and mime not in ALLOWED_IMPORT_MIME:
        raise ValidationError(f"Unsupported import mime: {mime}")

def validate_percentage(value: Any, field: str) -> int:
    """Return value as an int in [0, 100] or raise ValidationError."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer between 0 and 100.")
    if not (0 <= value <= 100):
        raise ValidationError(f"{field} must be between 0 and 100.")
    return value
