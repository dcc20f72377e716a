"""
Accès aux données (Supabase) pour le catalogue produits.
- Lectures: exceptions « catchées », retour neutre ([], None) avec log.
- Stock: reserve_stock/release_stock implémentent une mise à jour conditionnelle
  (compare-and-set sur la colonne stock) au lieu d'un lire-puis-écrire non protégé.
"""
from typing import Any, Dict, List, Optional, Tuple
import logging
import backend.infra.supabase_client as supabase_client
from backend.config import STOCK_RESERVATION_ATTEMPTS, NEW_PRODUCTS_CATEGORY

logger = logging.getLogger(__name__)

TABLE = "products"

def _table():
    return supabase_client.get_service_supabase().table(TABLE)

# module backend.products.repository
def list_products(
    *,
    page: int = 1,
    limit: int = 10,
    search: str = "",
    category: str = "",
    active_only: bool = True,
) -> Tuple[List[dict], int]:
    """
    Liste paginée des produits, plus récents d'abord.
    - search: filtre ilike sur name/description
    - category: égalité stricte
    - Retour: (rows, total) ; ([], 0) en cas d'erreur
    """
    start = max(0, (page - 1) * limit)
    try:
        query = _table().select("*", count="exact")
        if search:
            term = search.replace(",", " ").strip()
            query = query.or_(f"name.ilike.%{term}%,description.ilike.%{term}%")
        if category:
            query = query.eq("category", category)
        if active_only:
            query = query.eq("is_active", True)
        res = query.order("created_at", desc=True).range(start, start + limit - 1).execute()
        rows = res.data or []
        total = getattr(res, "count", None)
        return rows, int(total) if total is not None else len(rows)
    except Exception:
        logger.exception("products.repository.list_products failed page=%s search=%s", page, search)
        return [], 0

def list_new_items(limit: int = 10) -> List[dict]:
    try:
        res = (
            _table()
            .select("*")
            .eq("category", NEW_PRODUCTS_CATEGORY)
            .eq("is_active", True)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("products.repository.list_new_items failed")
        return []

def get_product(product_id: str) -> Optional[dict]:
    if not product_id:
        return None
    try:
        res = _table().select("*").eq("id", str(product_id)).limit(1).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.get_product failed id=%s", product_id)
        return None

def get_products_by_ids(ids: List[str]) -> List[dict]:
    """Récupère plusieurs produits en une requête (in_). [] si ids vide ou erreur."""
    if not ids:
        return []
    try:
        res = _table().select("*").in_("id", [str(i) for i in ids]).execute()
        return res.data or []
    except Exception:
        logger.exception("products.repository.get_products_by_ids failed ids=%s", ids)
        return []

def create_product(data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = _table().insert(data).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.create_product failed data=%s", data)
        return None

def update_product(product_id: str, data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = _table().update(data).eq("id", str(product_id)).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.update_product failed id=%s", product_id)
        return None

def delete_product(product_id: str) -> bool:
    """True si une ligne a été supprimée."""
    try:
        res = _table().delete().eq("id", str(product_id)).execute()
        return bool(res.data)
    except Exception:
        logger.exception("products.repository.delete_product failed id=%s", product_id)
        return False

def bulk_update_products(ids: List[str], updates: Dict[str, Any]) -> int:
    """Applique `updates` à tous les ids; retourne le nombre de lignes modifiées."""
    if not ids or not updates:
        return 0
    try:
        res = _table().update(updates).in_("id", [str(i) for i in ids]).execute()
        return len(res.data or [])
    except Exception:
        logger.exception("products.repository.bulk_update_products failed ids=%s", ids)
        return 0

def get_stock(product_id: str) -> Optional[int]:
    res = _table().select("stock").eq("id", str(product_id)).limit(1).execute()
    rows = res.data or []
    if not rows:
        return None
    return int(rows[0].get("stock") or 0)

def _compare_and_set_stock(product_id: str, expected: int, new_value: int) -> bool:
    res = (
        _table()
        .update({"stock": new_value})
        .eq("id", str(product_id))
        .eq("stock", expected)
        .execute()
    )
    return bool(res.data)

def reserve_stock(product_id: str, quantity: int) -> bool:
    """
    Décrémente le stock de `quantity` seulement si stock >= quantity.
    - L'écriture est conditionnée à la valeur lue (eq stock=<lu>): une écriture concurrente
      fait échouer le compare-and-set, on relit et on réessaie (STOCK_RESERVATION_ATTEMPTS).
    - Retour False: stock insuffisant, produit absent ou contention persistante.
    - Les erreurs du store remontent à l'appelant (le service gère le rollback).
    """
    for attempt in range(max(1, STOCK_RESERVATION_ATTEMPTS)):
        current = get_stock(product_id)
        if current is None or current < quantity:
            return False
        if _compare_and_set_stock(product_id, current, current - quantity):
            return True
        logger.info("products.repository.reserve_stock contention id=%s attempt=%s", product_id, attempt + 1)
    return False

def release_stock(product_id: str, quantity: int) -> bool:
    """Ré-incrémente le stock (rollback d'une réservation). Log et False en cas d'échec."""
    try:
        for _ in range(max(1, STOCK_RESERVATION_ATTEMPTS)):
            current = get_stock(product_id)
            if current is None:
                return False
            if _compare_and_set_stock(product_id, current, current + quantity):
                return True
        logger.error("products.repository.release_stock gave up id=%s qty=%s", product_id, quantity)
        return False
    except Exception:
        logger.exception("products.repository.release_stock failed id=%s qty=%s", product_id, quantity)
        return False
