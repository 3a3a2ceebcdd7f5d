"""API authentication: resolves the calling dashboard user."""

import logging
from typing import Optional
from fastapi import Depends, Header, Security
from fastapi.security import APIKeyHeader, APIKeyQuery
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.infra.config import config
from app.infra.database import get_db
from app.infra.error_handler import AuthError
from app.services.api_key_service import verify_and_get_user_id

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
api_key_query = APIKeyQuery(name="api_key", auto_error=False)


async def get_current_user_id(
    api_key: Optional[str] = Security(api_key_header),
    api_key_query_param: Optional[str] = Security(api_key_query),
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> str:
    """
    Verify the API key and return the user id it belongs to.

    The master key acts on behalf of the user named in X-User-ID.

    Raises:
        AuthError: If the key is missing or invalid
    """
    key = api_key or api_key_query_param

    if not key:
        raise AuthError("API key required. Provide X-API-Key header or api_key query parameter.")

    if len(key) < 16:
        raise AuthError("Invalid API key format")

    if config.MASTER_API_KEY and key == config.MASTER_API_KEY:
        if not x_user_id:
            raise AuthError("Master key requires an X-User-ID header")
        return x_user_id

    try:
        user_id = verify_and_get_user_id(key, db)
    except SQLAlchemyError as e:
        logger.warning("API key verification failed", extra={"error": str(e)})
        user_id = None

    if not user_id:
        raise AuthError("Invalid API key")

    return user_id
