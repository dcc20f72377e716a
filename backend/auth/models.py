from typing import Optional, Dict, Any
import logging
from pydantic import BaseModel, EmailStr, Field, field_validator

from backend.utils.validators import validate_password_strength, validate_username

logger = logging.getLogger(__name__)

class AuthResponse:
    def __init__(
        self,
        success: bool,
        user: Optional[Dict[str, Any]] = None,
        session: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ):
        self.success = success
        self.user = user
        self.session = session
        self.error = error

    @property
    def access_token(self):
        return (self.session or {}).get("access_token")

    @property
    def refresh_token(self):
        return (self.session or {}).get("refresh_token")

def build_user_dict(user) -> Dict[str, Any]:
    return {
        "id": getattr(user, "id", None),
        "email": getattr(user, "email", None),
        "metadata": getattr(user, "user_metadata", None) or {},
    }

def build_session_dict(session) -> Dict[str, Any]:
    return {
        "access_token": getattr(session, "access_token", None),
        "refresh_token": getattr(session, "refresh_token", None),
    }

def make_auth_response(res, fallback_error: str = "Invalid credentials") -> AuthResponse:
    sess = getattr(res, "session", None)
    user = getattr(res, "user", None)
    if not sess or not getattr(sess, "access_token", None):
        return AuthResponse(False, error=fallback_error)
    return AuthResponse(True, user=build_user_dict(user), session=build_session_dict(sess))

def handle_exception(action: str, e: Exception, fallback_error: str = "Invalid credentials") -> AuthResponse:
    logger.warning("auth %s failed: %s", action, e)
    return AuthResponse(False, error=fallback_error)

# --- Schémas de requête (/api/v1/auth) ---

class RegisterRequest(BaseModel):
    username: str
    email: EmailStr
    password: str

    @field_validator("username")
    def username_format(cls, v: str) -> str:
        return validate_username(v)

    @field_validator("password")
    def password_strength(cls, v: str) -> str:
        return validate_password_strength(v)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

class ProfileUpdateRequest(BaseModel):
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)
    date_of_birth: Optional[str] = None
    gender: Optional[str] = Field(default=None, max_length=30)

class ProfilePictureRequest(BaseModel):
    profile_picture: Optional[str] = None
