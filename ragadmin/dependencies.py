import hmac
from typing import Optional

from fastapi import Header

from ragadmin.core.config import settings
from ragadmin.core.exceptions import AccessDeniedError
from ragadmin.services.connection_monitor import ConnectionHistory
from ragadmin.services.hosted_functions import connection_history


def require_admin_token(x_admin_token: Optional[str] = Header(default=None)):
    """
    Guard for every /api route.
    Open when ADMIN_API_TOKEN is unset, which is only allowed in development and testing.
    """
    if not settings.admin_token:
        return
    if not x_admin_token or not hmac.compare_digest(x_admin_token, settings.admin_token):
        raise AccessDeniedError()


def get_connection_history() -> ConnectionHistory:
    return connection_history
