# module backend.admin.service

from typing import Any, Dict
from backend.admin import repository as admin_repository
from backend.config import LOW_STOCK_THRESHOLD, NEW_PRODUCTS_CATEGORY
from backend.contacts import service as contacts_service
from backend.orders import service as orders_service
from backend.products import service as products_service
from backend.users import repository as users_repo
import logging

logger = logging.getLogger(__name__)

def get_stats() -> Dict[str, int]:
    """Compteurs du tableau de bord (catalogue, commandes, utilisateurs)."""
    count = admin_repository.count_table_rows
    return {
        "total_products": count("products"),
        "new_products": count("products", [("eq", "category", NEW_PRODUCTS_CATEGORY)]),
        "active_products": count("products", [("eq", "is_active", True)]),
        "low_stock_products": count("products", [("lt", "stock", LOW_STOCK_THRESHOLD)]),
        "total_orders": count("orders"),
        "total_users": count("users"),
    }

def list_users(limit: int = 200) -> Dict[str, Any]:
    return {"users": users_repo.list_users(limit=limit)}

def list_contacts() -> Dict[str, Any]:
    return contacts_service.list_contacts()

def list_products(page: int = 1, limit: int = 20, search: str = "", category: str = "") -> Dict[str, Any]:
    """Catalogue complet pour le tableau de bord, produits désactivés compris."""
    return products_service.list_products(page=page, limit=limit, search=search, category=category, include_inactive=True)

def list_orders(limit: int = 100) -> Dict[str, Any]:
    return {"orders": orders_service.list_all_orders(limit=limit)}
