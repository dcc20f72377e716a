from fastapi import APIRouter, Depends, Request
from typing import Dict, Any
import logging

from backend.utils.errors import AuthenticationError
from backend.utils.rate_limit import LoginAttemptLimiter, client_identity, get_login_limiter
from backend.utils.security import require_user
from .models import LoginRequest, RegisterRequest, ProfileUpdateRequest, ProfilePictureRequest
from .service import (
    register as svc_register,
    login as svc_login,
    get_profile as svc_get_profile,
    update_profile as svc_update_profile,
    update_profile_picture as svc_update_profile_picture,
)

logger = logging.getLogger(__name__)

# --- API Router (/api/v1/auth) ---

api_router = APIRouter(prefix="/api/v1/auth", tags=["Auth API"])

@api_router.post("/register", status_code=201)
def api_register(req: RegisterRequest):
    """Inscription (API JSON).
    - Force du mot de passe et format du username vérifiés par Pydantic (422 sinon).
    - 400 VALIDATION_ERROR si l'email ou le username existe déjà.
    """
    return svc_register(req.username, req.email, req.password)

@api_router.post("/login")
def api_login(req: LoginRequest, request: Request, limiter: LoginAttemptLimiter = Depends(get_login_limiter)):
    """Point d'entrée de connexion (API JSON).
    - Verrouillage par IP client après MAX_FAILED_LOGIN_ATTEMPTS échecs (429 RATE_LIMITED).
    - Un succès remet le compteur à zéro.
    - Retourne {message, access_token, token_type, user}.
    """
    key = client_identity(request)
    limiter.check(key)
    result = svc_login(req.email, req.password)
    if not result.success:
        attempts = limiter.record_failure(key)
        logger.info("auth.login failed key=%s attempts=%s", key, attempts)
        raise AuthenticationError(result.error or "Invalid credentials", code="INVALID_CREDENTIALS")
    limiter.reset(key)
    return {
        "message": "Login successful",
        "access_token": result.access_token,
        "token_type": "bearer",
        "user": result.user,
    }

@api_router.get("/profile")
def api_profile(user: Dict[str, Any] = Depends(require_user)):
    """Profil de l'utilisateur courant (sans secret)."""
    return svc_get_profile(user["id"])

@api_router.put("/profile")
def api_update_profile(req: ProfileUpdateRequest, user: Dict[str, Any] = Depends(require_user)):
    return svc_update_profile(user["id"], req.model_dump(exclude_unset=True))

@api_router.put("/profile/picture")
def api_update_profile_picture(req: ProfilePictureRequest, user: Dict[str, Any] = Depends(require_user)):
    return svc_update_profile_picture(user["id"], req.profile_picture)
