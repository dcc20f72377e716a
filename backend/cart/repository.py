"""
Accès aux données pour la feature 'cart' (table carts, une ligne par utilisateur, items en JSON).
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging
import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "carts"

# module backend.cart.repository
def get_cart_by_user(user_id: str) -> Optional[dict]:
    """Panier actif de l'utilisateur, None si absent ou erreur."""
    if not user_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("cart.repository.get_cart_by_user failed user_id=%s", user_id)
        return None

def get_cart(cart_id: str, user_id: str) -> Optional[dict]:
    """Panier par id, restreint à son propriétaire (utilisé par le webhook)."""
    if not cart_id or not user_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("id", str(cart_id))
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("cart.repository.get_cart failed cart_id=%s user_id=%s", cart_id, user_id)
        return None

def create_cart(user_id: str, items: List[Dict[str, Any]]) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .insert({"user_id": str(user_id), "items": items, "updated_at": _now()})
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("cart.repository.create_cart failed user_id=%s", user_id)
        return None

def save_items(cart_id: str, items: List[Dict[str, Any]]) -> Optional[dict]:
    """Remplace la liste d'items du panier; retourne le panier mis à jour."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update({"items": items, "updated_at": _now()})
            .eq("id", str(cart_id))
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("cart.repository.save_items failed cart_id=%s", cart_id)
        return None

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
