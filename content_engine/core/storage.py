"""
File Storage & Security

Stores generated files (synthesized narration audio) under the storage root
and builds the public URLs the render worker downloads them from.

Provides:
- Path traversal prevention
- Filename sanitization
- File type validation
"""

import os
import re
from pathlib import Path
from uuid import uuid4

import aiofiles

from .config import get_settings


# Allowed file extensions by category
ALLOWED_EXTENSIONS: dict[str, set[str]] = {
    "audio": {".mp3", ".wav", ".m4a", ".ogg"},
}


def get_storage_root() -> Path:
    """
    Get the storage root path from configuration.

    Raises:
        ValueError: If storage path is not configured
    """
    storage_path = get_settings().storage_path

    if not storage_path:
        raise ValueError("STORAGE_PATH environment variable not set")

    return Path(storage_path).resolve()


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename to prevent path traversal and other security issues.

    - Strips directory components (basename only)
    - Removes null bytes
    - Removes characters that are problematic on various filesystems
    - Limits filename length to 100 characters (excluding extension)

    Example:
        >>> sanitize_filename("../../../etc/passwd")
        'passwd'
        >>> sanitize_filename("my<file>name.mp3")
        'myfilename.mp3'
    """
    filename = os.path.basename(filename)
    filename = filename.replace("\x00", "")
    filename = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "", filename)

    name, ext = os.path.splitext(filename)
    name = name.strip(". ")[:100]

    # If name is empty after sanitization, generate a random one
    if not name:
        name = uuid4().hex[:8]

    return f"{name}{ext}"


def validate_file_type(filename: str, expected_type: str) -> bool:
    """
    Validate that a filename has an allowed extension for the expected type.

    Example:
        >>> validate_file_type("narration.mp3", "audio")
        True
        >>> validate_file_type("script.exe", "audio")
        False
    """
    ext = os.path.splitext(filename)[1].lower()
    return ext in ALLOWED_EXTENSIONS.get(expected_type, set())


def resolve_stored_path(category: str, filename: str) -> Path:
    """
    Resolve the on-disk path of a stored file.

    The path is structured as {STORAGE_ROOT}/{category}/{sanitized_filename}.

    Raises:
        ValueError: If the category is unknown, the extension is not allowed,
                    or the path escapes the storage root
    """
    if category not in ALLOWED_EXTENSIONS:
        raise ValueError(
            f"Invalid category: {category}. Must be one of: {', '.join(ALLOWED_EXTENSIONS)}"
        )

    safe_filename = sanitize_filename(filename)
    if not validate_file_type(safe_filename, category):
        raise ValueError(f"File type not allowed for {category}: {safe_filename}")

    storage_root = get_storage_root()
    resolved_path = (storage_root / category / safe_filename).resolve()

    if not str(resolved_path).startswith(str(storage_root) + os.sep):
        raise ValueError("Path traversal detected: path escapes storage root")

    return resolved_path


async def save_generated_file(category: str, filename: str, content: bytes) -> Path:
    """
    Write generated bytes under the storage root and return the file path.

    Parent directories are created on demand.
    """
    path = resolve_stored_path(category, filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, "wb") as f:
        await f.write(content)
    return path


def public_file_url(category: str, filename: str) -> str:
    """Build the externally reachable URL for a stored file."""
    base_url = get_settings().public_base_url.rstrip("/")
    return f"{base_url}/api/files/{category}/{sanitize_filename(filename)}"
