"""Couche service du catalogue produits.
Rôles:
- Lecture publique paginée (recherche, catégorie) et nouveautés.
- CRUD administrateur (création, mise à jour, suppression, mise à jour en masse).
- Helpers partagés avec le panier et les commandes: résumé produit, lecture du stock.
"""
from math import ceil
from typing import Any, Dict, Iterable, List, Optional
import logging

from backend.products import repository
from backend.utils.errors import InternalError, NotFound, ValidationError

logger = logging.getLogger(__name__)

CART_SUMMARY_FIELDS = ("id", "name", "price", "image", "category", "brand")
ORDER_SUMMARY_FIELDS = ("id", "name", "price", "image")

def stock_of(product: Dict[str, Any]) -> int:
    try:
        return int(product.get("stock") or 0)
    except (TypeError, ValueError):
        return 0

def product_summary(product: Optional[Dict[str, Any]], fields: Iterable[str] = CART_SUMMARY_FIELDS) -> Optional[Dict[str, Any]]:
    """Projection dénormalisée d'un produit (None si produit absent)."""
    if not product:
        return None
    return {f: product.get(f) for f in fields}

def products_by_id(ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """Retourne {id: produit} pour une liste d'IDs (doublons tolérés)."""
    unique = list(dict.fromkeys(str(i) for i in ids if i))
    return {str(p.get("id")): p for p in repository.get_products_by_ids(unique)}

def list_products(
    page: int = 1, limit: int = 10, search: str = "", category: str = "", include_inactive: bool = False
) -> Dict[str, Any]:
    """Page du catalogue; include_inactive=True réservé à l'administration (produits désactivés inclus)."""
    rows, total = repository.list_products(
        page=page, limit=limit, search=search, category=category, active_only=not include_inactive
    )
    return {
        "products": rows,
        "total_pages": ceil(total / limit) if limit else 0,
        "current_page": page,
        "total": total,
    }

def list_new_items(limit: int = 10) -> List[dict]:
    return repository.list_new_items(limit=limit)

def get_product(product_id: str) -> Dict[str, Any]:
    product = repository.get_product(product_id)
    if not product:
        raise NotFound("Product not found")
    return product

def create_product(data: Dict[str, Any]) -> Dict[str, Any]:
    created = repository.create_product(data)
    if not created:
        raise InternalError("Impossible de créer le produit")
    logger.info("products.create id=%s name=%s", created.get("id"), created.get("name"))
    return created

def update_product(product_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    get_product(product_id)
    if not data:
        raise ValidationError("Aucun champ à mettre à jour")
    updated = repository.update_product(product_id, data)
    if not updated:
        raise InternalError("Impossible de mettre à jour le produit")
    return updated

def delete_product(product_id: str) -> Dict[str, str]:
    get_product(product_id)
    if not repository.delete_product(product_id):
        raise InternalError("Impossible de supprimer le produit")
    return {"message": "Product deleted successfully"}

def bulk_update(ids: List[str], updates: Dict[str, Any]) -> Dict[str, Any]:
    if not ids or not updates:
        raise ValidationError("ids et updates sont requis")
    modified = repository.bulk_update_products(ids, updates)
    return {"message": f"{modified} products updated successfully", "modified_count": modified}
