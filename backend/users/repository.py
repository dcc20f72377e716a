"""Couche d'accès aux données (Supabase) pour les profils utilisateurs (table users).
Le mot de passe vit uniquement dans Supabase Auth: aucune colonne secrète n'est lue ici.
Les exceptions sont « catchées » et transformées en valeurs neutres ([], None, False).
"""
from typing import Any, Dict, List, Optional
import logging
import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "users"
PROFILE_FIELDS = (
    "id, email, username, role, first_name, last_name, phone, "
    "date_of_birth, gender, profile_picture, created_at, updated_at"
)

def _table():
    return supabase_client.get_service_supabase().table(TABLE)

def _first(res) -> Optional[dict]:
    rows = getattr(res, "data", None) or []
    return rows[0] if rows else None

def get_user_by_id(user_id: str) -> Optional[dict]:
    """Profil par id; None si introuvable/erreur."""
    if not user_id:
        return None
    try:
        return _first(_table().select(PROFILE_FIELDS).eq("id", user_id).limit(1).execute())
    except Exception:
        logger.exception("users.repository.get_user_by_id failed id=%s", user_id)
        return None

def get_user_by_email(email: str) -> Optional[dict]:
    if not email:
        return None
    try:
        return _first(_table().select(PROFILE_FIELDS).eq("email", email.strip().lower()).limit(1).execute())
    except Exception:
        logger.exception("users.repository.get_user_by_email failed")
        return None

def get_user_by_username(username: str) -> Optional[dict]:
    if not username:
        return None
    try:
        return _first(_table().select(PROFILE_FIELDS).eq("username", username.strip()).limit(1).execute())
    except Exception:
        logger.exception("users.repository.get_user_by_username failed")
        return None

def create_user_profile(user_id: str, email: str, username: str, role: str = "user") -> Optional[dict]:
    """Crée le profil applicatif lié au compte Supabase Auth (clé de service)."""
    payload: Dict[str, Any] = {
        "id": user_id,
        "email": (email or "").strip().lower(),
        "username": username,
        "role": role,
    }
    try:
        res = _table().insert(payload).execute()
        return _first(res) or payload
    except Exception:
        logger.exception("users.repository.create_user_profile failed id=%s", user_id)
        return None

def update_user_profile(user_id: str, data: Dict[str, Any]) -> Optional[dict]:
    """Met à jour les champs fournis et retourne le profil relu (None si introuvable/erreur)."""
    try:
        _table().update(data).eq("id", user_id).execute()
    except Exception:
        logger.exception("users.repository.update_user_profile failed id=%s", user_id)
        return None
    return get_user_by_id(user_id)

def list_users(limit: int = 200) -> List[dict]:
    """Profils pour l'admin, plus récents d'abord."""
    try:
        res = _table().select(PROFILE_FIELDS).order("created_at", desc=True).limit(limit).execute()
        return res.data or []
    except Exception:
        logger.exception("users.repository.list_users failed")
        return []
