"""
Accès aux données pour la feature 'orders' (table orders).
Les commandes ne sont jamais supprimées; seuls statuts et suivi sont modifiables.
"""
from typing import Any, Dict, List, Optional
import logging
import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "orders"

# module backend.orders.repository
def insert_order(order: Dict[str, Any]) -> Optional[dict]:
    """Insert via service-role; retourne la ligne créée (avec id, created_at) ou None."""
    try:
        res = supabase_client.get_service_supabase().table(TABLE).insert(order).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.insert_order failed user_id=%s", order.get("user_id"))
        return None

def list_orders_for_user(user_id: str) -> List[dict]:
    if not user_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.list_orders_for_user failed user_id=%s", user_id)
        return []

def list_all_orders(limit: int = 100) -> List[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.list_all_orders failed")
        return []

def get_order(order_id: str, user_id: Optional[str] = None) -> Optional[dict]:
    """Commande par id; restreinte au propriétaire si user_id est fourni."""
    if not order_id:
        return None
    try:
        query = supabase_client.get_service_supabase().table(TABLE).select("*").eq("id", str(order_id))
        if user_id:
            query = query.eq("user_id", str(user_id))
        res = query.limit(1).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.get_order failed id=%s", order_id)
        return None

def find_by_payment_id(payment_intent_id: str, user_id: Optional[str] = None) -> Optional[dict]:
    if not payment_intent_id:
        return None
    try:
        query = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("stripe_payment_id", str(payment_intent_id))
        )
        if user_id:
            query = query.eq("user_id", str(user_id))
        res = query.limit(1).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.find_by_payment_id failed pi=%s", payment_intent_id)
        return None

def update_order(order_id: str, data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update(data)
            .eq("id", str(order_id))
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.update_order failed id=%s", order_id)
        return None
