import secrets
from typing import Optional

from fastapi import Header, HTTPException, Request

from ..config import AppConfig
from ..storage.database import Database


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def require_admin(
    request: Request,
    x_admin_token: Optional[str] = Header(default=None),
) -> None:
    """Check X-Admin-Token when an admin token is configured."""
    expected = request.app.state.config.admin.token
    if not expected:
        return
    if not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=401, detail="Invalid admin token")
