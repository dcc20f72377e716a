# module backend.cart.views

"""Endpoints du panier (authentifiés).
- GET /api/v1/cart: panier courant avec total et nombre d'articles.
- POST /api/v1/cart: ajout d'une ligne (cumul si même produit/taille/couleur).
- PUT/DELETE /api/v1/cart/{item_id}: quantité d'une ligne / retrait.
- DELETE /api/v1/cart: vide le panier (le panier est conservé).
"""
from typing import Any, Dict
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from backend.cart import service as cart_service
from backend.utils.security import require_user

router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])


class AddItemRequest(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    size: str = ""
    color: str = ""


class UpdateItemRequest(BaseModel):
    quantity: int


@router.get("")
def get_cart(user: Dict[str, Any] = Depends(require_user)):
    return cart_service.get_cart(user["id"])


@router.post("", status_code=201)
def add_item(req: AddItemRequest, user: Dict[str, Any] = Depends(require_user)):
    return cart_service.add_item(user["id"], req.product_id, req.quantity, req.size, req.color)


@router.put("/{item_id}")
def update_item(item_id: str, req: UpdateItemRequest, user: Dict[str, Any] = Depends(require_user)):
    # quantity < 1 est rejeté par le service (message explicite, 400)
    return cart_service.update_item(user["id"], item_id, req.quantity)


@router.delete("/{item_id}")
def remove_item(item_id: str, user: Dict[str, Any] = Depends(require_user)):
    return cart_service.remove_item(user["id"], item_id)


@router.delete("")
def clear_cart(user: Dict[str, Any] = Depends(require_user)):
    return cart_service.clear_cart(user["id"])
