# Core modules for the Content Engine backend
from .config import RenderPipelineConfig, Settings, get_settings, settings
from .database import Base, get_async_session, async_engine, AsyncSessionLocal
from .security import (
    create_access_token,
    decode_token,
    get_current_user_id,
)
from .storage import (
    ALLOWED_EXTENSIONS,
    get_storage_root,
    public_file_url,
    resolve_stored_path,
    sanitize_filename,
    save_generated_file,
    validate_file_type,
)

__all__ = [
    # Config
    "RenderPipelineConfig",
    "Settings",
    "get_settings",
    "settings",
    # Database
    "Base",
    "get_async_session",
    "async_engine",
    "AsyncSessionLocal",
    # Security
    "create_access_token",
    "decode_token",
    "get_current_user_id",
    # Storage
    "ALLOWED_EXTENSIONS",
    "get_storage_root",
    "public_file_url",
    "resolve_stored_path",
    "sanitize_filename",
    "save_generated_file",
    "validate_file_type",
]
