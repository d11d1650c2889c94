"""Shared FastAPI dependencies."""
import secrets

from fastapi import Header, HTTPException

_admin_api_key = ""


def configure_admin_key(key: str | None) -> None:
    global _admin_api_key
    _admin_api_key = (key or "").strip()


def require_admin_key(x_admin_key: str | None = Header(default=None)) -> None:
    """Raise 403 unless X-Admin-Key matches ADMIN_API_KEY. Open when unset."""
    if not _admin_api_key:
        return
    if not x_admin_key or not secrets.compare_digest(x_admin_key, _admin_api_key):
        raise HTTPException(status_code=403, detail="Access denied. Admin key required.")
