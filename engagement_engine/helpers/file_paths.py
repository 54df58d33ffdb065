import os
from datetime import datetime
from uuid import UUID

BYTES_PER_MB = 1024 * 1024


def file_extension(file_name: str) -> str:
    """
    Lower-cased extension without the dot.
    Example:
    Report.Final.DOCX -> docx
    README -> ""
    """
    _, ext = os.path.splitext(os.path.basename(file_name or ""))
    return ext[1:].lower()


def normalize_extension(ext: str) -> str:
    return ext.strip().lstrip(".").lower()


def max_size_bytes(max_file_size_mb: int) -> int:
    return max_file_size_mb * BYTES_PER_MB


def assignment_path_hint(participant_id: UUID, event_id: UUID, ext: str, now: datetime) -> str:
    """
    Object-store path for an assignment upload.
    Example:
    <participant_id>/<event_id>_1760000000.pdf
    """
    return f"{participant_id}/{event_id}_{int(now.timestamp())}.{ext}"
