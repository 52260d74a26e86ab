from slowapi import Limiter
from slowapi.util import get_remote_address
from chitledger.core.config import settings

# Global Rate Limiter instance keyed on remote address, Redis shared with Celery by default
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI or settings.CELERY_BROKER_URL
)
