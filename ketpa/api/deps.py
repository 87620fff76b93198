from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.errors import AuthenticationFailed, TooManyRequests
from ..core.security import security, verify_token, TokenPayload
from ..models.user import User
from ..services.notification_service import Notifier, SMTPMailer

logger = logging.getLogger(__name__)

async def get_current_user_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    if credentials is None:
        raise AuthenticationFailed()

    token_payload = verify_token(credentials.credentials)
    if not token_payload or token_payload.user_id is None:
        raise AuthenticationFailed()

    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    user = db.get(User, token_payload.user_id)
    if not user:
        raise AuthenticationFailed()

    return user

def get_mailer() -> SMTPMailer:
    """Mail transport built from settings; tests override this."""
    return SMTPMailer.from_settings(settings)

def get_notifier(mailer = Depends(get_mailer)) -> Notifier:
    return Notifier(mailer, settings)

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic rate limiting for account endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{request.url.path}:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
    else:
        if int(current_requests) >= settings.RATE_LIMIT_MAX_REQUESTS:
            logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
            raise TooManyRequests()
        redis_client.incr(key)
