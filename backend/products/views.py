# module backend.products.views

"""Endpoints du catalogue.
- Lecture publique: liste paginée, nouveautés, détail.
- Écriture réservée aux administrateurs (require_admin).
"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from backend.products import service as products_service
from backend.utils.security import require_admin

router = APIRouter(prefix="/api/v1/products", tags=["Products API"])


class ProductIn(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    price: float = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    category: str = ""
    brand: str = ""
    image: str = ""
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = None
    brand: Optional[str] = None
    image: Optional[str] = None
    is_active: Optional[bool] = None


class BulkUpdateRequest(BaseModel):
    ids: List[str] = Field(min_length=1)
    updates: ProductUpdate


@router.get("")
def list_products(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: str = "",
    category: str = "",
) -> Dict[str, Any]:
    return products_service.list_products(page=page, limit=limit, search=search, category=category)


@router.get("/new-items")
def list_new_items(limit: int = Query(default=10, ge=1, le=100)) -> List[dict]:
    return products_service.list_new_items(limit=limit)


@router.put("/bulk/update")
def bulk_update(req: BulkUpdateRequest, user: dict = Depends(require_admin)):
    return products_service.bulk_update(req.ids, req.updates.model_dump(exclude_none=True))


@router.get("/{product_id}")
def get_product(product_id: str):
    return products_service.get_product(product_id)


@router.post("", status_code=201)
def create_product(req: ProductIn, user: dict = Depends(require_admin)):
    return products_service.create_product(req.model_dump())


@router.put("/{product_id}")
def update_product(product_id: str, req: ProductUpdate, user: dict = Depends(require_admin)):
    return products_service.update_product(product_id, req.model_dump(exclude_none=True))


@router.delete("/{product_id}")
def delete_product(product_id: str, user: dict = Depends(require_admin)):
    return products_service.delete_product(product_id)
