import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, Query, status

from app.core.config import settings
from app.core.messages import messages

logger = logging.getLogger(__name__)


async def require_admin_key(x_api_key: Optional[str] = Header(default=None)) -> None:
    """
    Gate for the administrative endpoints.
    Rejects every request when ADMIN_API_KEY is not configured.
    """
    if not settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin API is disabled"
        )
    if not x_api_key or not hmac.compare_digest(x_api_key, settings.admin_api_key):
        logger.warning("Rejected admin request with invalid API key")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


async def get_lang(lang: Optional[str] = Query(default=None)) -> str:
    return messages.language(lang)
