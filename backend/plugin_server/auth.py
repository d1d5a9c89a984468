"""
Current user and clock providers

The server does not authenticate. The uploading user is whatever the
X-User header names, or the configured default user.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import Header

from .config import get_settings

USER_HEADER = "X-User"


def get_current_user(x_user: Optional[str] = Header(None, alias=USER_HEADER)) -> Optional[str]:
    """Get the user name recorded on uploads, None when nobody is known"""
    if x_user and x_user.strip():
        return x_user.strip()
    return get_settings().default_user


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
