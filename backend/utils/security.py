from fastapi import Request, Depends
from typing import Dict, Any
import logging

from backend.utils.errors import AuthenticationError, PermissionDenied

logger = logging.getLogger(__name__)

def bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return ""
    return auth_header[7:].strip()

def get_current_user(request: Request) -> Dict[str, Any]:
    # Bearer uniquement: pas de session cookie côté API
    token = bearer_token(request)
    if not token:
        raise AuthenticationError("Access denied. No valid token provided.", code="NO_TOKEN")

    # Délégué au service Auth
    from backend.auth.service import get_user_from_token as _svc_get_user_from_token
    try:
        user = _svc_get_user_from_token(token)
    except Exception as e:
        logger.info("token verification failed: %s", e)
        raise AuthenticationError("Invalid or expired token. Please login again.", code="INVALID_TOKEN")
    if not user.get("id"):
        raise AuthenticationError("User not found. Token is invalid.", code="INVALID_TOKEN")
    return user

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user

def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if user.get("role") != "admin":
        raise PermissionDenied()
    return user
