from datetime import datetime, timezone
from typing import Optional, Dict, Any
import logging

from backend.auth.models import AuthResponse, make_auth_response, handle_exception
from backend.config import ADMIN_EMAILS
from backend.users import repository as users_repo
from backend.utils.errors import InternalError, NotFound, ValidationError
from backend.utils.validators import parse_iso_date
from .repository import (
    auth_sign_in_password as sign_in_password,
    auth_sign_up_account as sign_up_account,
    get_user_from_access_token as _repo_get_user_from_token,
)

logger = logging.getLogger(__name__)

ROLES = ("admin", "user")
PROFILE_UPDATABLE = ("first_name", "last_name", "phone", "date_of_birth", "gender")

def determine_role(profile: Optional[Dict[str, Any]], metadata: Optional[Dict[str, Any]] = None, email: Optional[str] = None) -> str:
    """Rôle effectif: profil (users.role), puis user_metadata.role, puis ADMIN_EMAILS, sinon 'user'."""
    for candidate in ((profile or {}).get("role"), (metadata or {}).get("role")):
        role = str(candidate or "").lower()
        if role in ROLES:
            return role
    if email and email.strip().lower() in ADMIN_EMAILS:
        return "admin"
    return "user"

def public_user(user_id: str, email: Optional[str], profile: Optional[Dict[str, Any]], role: str) -> Dict[str, Any]:
    return {
        "id": user_id,
        "username": (profile or {}).get("username"),
        "email": email or (profile or {}).get("email"),
        "role": role,
    }

# --- Cas d'usage Auth exposés ---

def register(username: str, email: str, password: str) -> Dict[str, Any]:
    """Inscription:
    - Refuse un email ou username déjà présent dans la table users (ValidationError)
    - Crée le compte Supabase Auth puis le profil applicatif (rôle 'user' sauf ADMIN_EMAILS)
    - Retourne le jeton si Supabase ouvre une session (sinon confirmation email attendue)
    """
    email = (email or "").strip().lower()
    username = (username or "").strip()
    if users_repo.get_user_by_email(email) or users_repo.get_user_by_username(username):
        raise ValidationError("User with this email or username already exists")

    try:
        res = sign_up_account(email=email, password=password, options_data={"username": username})
    except Exception as e:
        msg = str(e).lower()
        if any(k in msg for k in ["already", "registered", "exists", "23505"]):
            raise ValidationError("User with this email or username already exists")
        logger.exception("auth.register sign_up failed")
        raise InternalError("Registration failed")

    auth_user = getattr(res, "user", None)
    user_id = getattr(auth_user, "id", None)
    if not user_id:
        raise InternalError("Registration failed")

    role = determine_role(None, None, email)
    profile = users_repo.create_user_profile(user_id, email, username, role)
    if profile is None:
        raise InternalError("Failed to create user profile")
    logger.info("auth.register user created id=%s", user_id)

    result = make_auth_response(res)
    return {
        "message": "User registered successfully",
        "access_token": result.access_token,
        "token_type": "bearer",
        "user": public_user(user_id, email, profile, role),
    }

def login(email: str, password: str) -> AuthResponse:
    """Connexion:
    - Délègue à supabase.auth.sign_in_with_password via repository
    - Normalise la réponse en AuthResponse, enrichie du profil (username, rôle)
    """
    try:
        email = (email or "").strip().lower()
        res = sign_in_password(email, password)
    except Exception as e:
        return handle_exception("sign_in", e)
    result = make_auth_response(res)
    if result.success:
        user = result.user or {}
        profile = users_repo.get_user_by_id(user.get("id"))
        role = determine_role(profile, user.get("metadata"), user.get("email"))
        result.user = public_user(user.get("id"), user.get("email"), profile, role)
    return result

# --- Intégration sécurité / profil ---

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Normalise user issu de supabase.auth.get_user(access_token):
    - Retourne {id, email, username, metadata, role, token}
    """
    raw = _repo_get_user_from_token(access_token)
    uid = raw.get("id")
    email = raw.get("email")
    metadata = raw.get("user_metadata") or {}
    profile = users_repo.get_user_by_id(uid) if uid else None
    role = determine_role(profile, metadata, email)
    return {
        "id": uid,
        "email": email,
        "username": (profile or {}).get("username"),
        "metadata": metadata,
        "role": role,
        "token": access_token,
    }

def get_profile(user_id: str) -> Dict[str, Any]:
    profile = users_repo.get_user_by_id(user_id)
    if not profile:
        raise NotFound("User not found")
    return profile

def update_profile(user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    """Met à jour prénom, nom, téléphone, date de naissance (ISO) et genre."""
    data = {k: v for k, v in (fields or {}).items() if k in PROFILE_UPDATABLE and v is not None}
    if "date_of_birth" in data:
        try:
            data["date_of_birth"] = parse_iso_date(data["date_of_birth"])
        except ValueError:
            raise ValidationError("Invalid date format")
    data["updated_at"] = datetime.now(timezone.utc).isoformat()
    profile = users_repo.update_user_profile(user_id, data)
    if not profile:
        raise NotFound("User not found")
    return {"message": "Profile updated successfully", "user": profile}

def update_profile_picture(user_id: str, picture: Optional[str]) -> Dict[str, Any]:
    if not picture:
        raise ValidationError("Profile picture is required")
    profile = users_repo.update_user_profile(
        user_id,
        {"profile_picture": picture, "updated_at": datetime.now(timezone.utc).isoformat()},
    )
    if not profile:
        raise NotFound("User not found")
    return {"message": "Profile picture updated successfully", "user": profile}
