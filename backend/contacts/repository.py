from typing import Any, Dict, List, Optional
import logging
import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "contacts"

# module backend.contacts.repository
def insert_contact(data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = supabase_client.get_service_supabase().table(TABLE).insert(data).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("contacts.repository.insert_contact failed")
        return None

def list_contacts(limit: int = 500) -> List[dict]:
    """Messages de contact, plus récents d'abord."""
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
        logger.exception("contacts.repository.list_contacts failed")
        return []
