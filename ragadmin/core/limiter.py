from slowapi import Limiter
from slowapi.util import get_remote_address

from ragadmin.core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.environment != "testing",
)
