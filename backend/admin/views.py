from typing import Any, Dict
from fastapi import APIRouter, Depends, Query

from backend.utils.security import require_admin
from backend.admin import service as admin_service

router = APIRouter(prefix="/api/v1/admin", tags=["Admin API"], dependencies=[Depends(require_admin)])

# module backend.admin.views
@router.get("/stats")
def admin_stats():
    """Statistiques du tableau de bord (produits, nouveautés, actifs, stock bas, commandes, utilisateurs)."""
    return admin_service.get_stats()

@router.get("/users")
def admin_users(limit: int = Query(200, ge=1, le=1000)):
    """Profils utilisateurs, plus récents d'abord (aucun secret)."""
    return admin_service.list_users(limit=limit)

@router.get("/contacts")
def admin_contacts():
    return admin_service.list_contacts()

@router.get("/orders")
def admin_orders(limit: int = Query(100, ge=1, le=1000)) -> Dict[str, Any]:
    return admin_service.list_orders(limit=limit)

@router.get("/products")
def admin_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str = "",
    category: str = "",
) -> Dict[str, Any]:
    """Tous les produits (actifs et désactivés), avec recherche, catégorie et pagination."""
    return admin_service.list_products(page=page, limit=limit, search=search, category=category)
