# module backend.orders.views

"""Endpoints des commandes.
- POST /api/v1/orders: checkout direct depuis le panier de l'utilisateur.
- GET /api/v1/orders, /api/v1/orders/{id}: commandes de l'utilisateur (plus récentes d'abord).
- PUT /api/v1/orders/{id}/status: statut/suivi, réservé aux administrateurs.
Sécurité:
- require_user sur toutes les routes; require_admin en plus pour la mise à jour de statut.
"""
from typing import Any, Dict
from fastapi import APIRouter, Depends

from backend.orders import service as orders_service
from backend.orders.models import CreateOrderRequest, UpdateOrderStatusRequest
from backend.utils.security import require_admin, require_user

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])


@router.post("", status_code=201)
def create_order(req: CreateOrderRequest, user: Dict[str, Any] = Depends(require_user)):
    return orders_service.create_order(
        user["id"],
        req.shipping_address.model_dump(),
        req.payment_method.value,
        req.notes,
    )


@router.get("")
def list_orders(user: Dict[str, Any] = Depends(require_user)):
    return orders_service.list_orders(user["id"])


@router.get("/{order_id}")
def get_order(order_id: str, user: Dict[str, Any] = Depends(require_user)):
    return orders_service.get_order(user["id"], order_id)


@router.put("/{order_id}/status")
def update_order_status(order_id: str, req: UpdateOrderStatusRequest, user: Dict[str, Any] = Depends(require_admin)):
    return orders_service.update_order_status(
        order_id,
        order_status=req.order_status.value if req.order_status else None,
        tracking_number=req.tracking_number,
        payment_status=req.payment_status.value if req.payment_status else None,
    )
