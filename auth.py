"""Admin gate for configuration-changing routes.

Sessions and user accounts live elsewhere; this service only checks the
shared admin token sent in ``X-Admin-Token``.
"""

import hmac
from typing import Optional

from fastapi import Header

import config
from errors import AuthError


def require_admin(x_admin_token: Optional[str] = Header(None)) -> str:
    if not x_admin_token:
        raise AuthError("Authentication required")
    if not config.ADMIN_TOKEN or not hmac.compare_digest(x_admin_token, config.ADMIN_TOKEN):
        raise AuthError("Admin access required", code="FORBIDDEN", status=403)
    return "admin"
