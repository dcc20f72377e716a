"""Couche service des commandes.
Rôles:
- place_order: cœur partagé du checkout (direct et webhook Stripe).
  1) panier non vide, sinon EmptyCart
  2) pré-vérification du stock de chaque ligne (aucune écriture)
  3) assemblage du document via pricing.build_order (prix figés du panier)
  4) réservation séquentielle ligne par ligne (décrément conditionnel), rollback des lignes
     déjà réservées au premier échec
  5) insertion de la commande, puis vidage du panier
- Consultation (propriétaire) et mise à jour des statuts (administrateur).
"""
from typing import Any, Dict, List, Optional
import logging

from backend.cart import repository as cart_repo
from backend.orders import pricing
from backend.orders import repository
from backend.products import repository as products_repo
from backend.products.service import ORDER_SUMMARY_FIELDS, product_summary, products_by_id, stock_of
from backend.utils.errors import EmptyCart, InsufficientStock, InternalError, NotFound, ValidationError

logger = logging.getLogger(__name__)

def check_stock(items: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """
    Relit chaque produit et vérifie stock >= quantité de la ligne.
    - Premier manque: InsufficientStock nommant le produit (aucune écriture faite).
    - Retourne {product_id: produit} pour l'assemblage de la commande.
    """
    catalog: Dict[str, Dict[str, Any]] = {}
    for line in items:
        product_id = str(line.get("product_id"))
        product = products_repo.get_product(product_id)
        if not product:
            raise NotFound(f"Product {product_id} not found")
        available = stock_of(product)
        if available < int(line.get("quantity") or 0):
            raise InsufficientStock(product.get("name") or product_id, available, product_id)
        catalog[product_id] = product
    return catalog

def _release(reserved: List[Dict[str, Any]]) -> None:
    for line in reversed(reserved):
        if not products_repo.release_stock(str(line.get("product_id")), int(line.get("quantity") or 0)):
            logger.error("orders.release failed product_id=%s qty=%s", line.get("product_id"), line.get("quantity"))

def reserve_lines(items: List[Dict[str, Any]], catalog: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Réserve le stock ligne par ligne (décrément conditionnel « stock >= N »).
    - Échec tardif (course avec un autre checkout): libère les lignes déjà réservées puis InsufficientStock.
    - Erreur du store: libère puis InternalError.
    """
    reserved: List[Dict[str, Any]] = []
    for line in items:
        product_id = str(line.get("product_id"))
        quantity = int(line.get("quantity") or 0)
        try:
            ok = products_repo.reserve_stock(product_id, quantity)
        except Exception:
            logger.exception("orders.reserve_lines store error product_id=%s", product_id)
            _release(reserved)
            raise InternalError("Réservation du stock impossible")
        if not ok:
            _release(reserved)
            try:
                available = products_repo.get_stock(product_id) or 0
            except Exception:
                available = 0
            name = (catalog.get(product_id) or {}).get("name") or product_id
            logger.warning("orders.reserve_lines late shortage product_id=%s qty=%s available=%s", product_id, quantity, available)
            raise InsufficientStock(name, available, product_id)
        reserved.append(line)
    return reserved

def place_order(cart: Optional[Dict[str, Any]], shipping_address: Optional[Dict[str, Any]], payment: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Transforme un panier en commande (voir docstring du module)."""
    items = list((cart or {}).get("items") or [])
    if not cart or not items:
        raise EmptyCart()

    catalog = check_stock(items)
    snapshot = {
        **cart,
        "items": [
            {**line, "product": product_summary(catalog.get(str(line.get("product_id"))), ORDER_SUMMARY_FIELDS)}
            for line in items
        ],
    }
    order = pricing.build_order(snapshot, shipping_address, payment)

    reserved = reserve_lines(items, catalog)
    created = repository.insert_order(order)
    if not created:
        _release(reserved)
        raise InternalError("Impossible d'enregistrer la commande")

    if cart_repo.save_items(cart["id"], []) is None:
        # Commande déjà enregistrée: on ne l'annule pas pour un panier non vidé
        logger.error("orders.place_order cart not cleared cart_id=%s order_id=%s", cart.get("id"), created.get("id"))

    logger.info(
        "orders.place_order created id=%s user_id=%s total=%s lines=%s",
        created.get("id"), created.get("user_id"), created.get("total"), len(items),
    )
    return present_order(created)

def present_order(order: Dict[str, Any], catalog: Optional[Dict[str, Dict[str, Any]]] = None) -> Dict[str, Any]:
    """Ajoute aux lignes un résumé produit courant (id, name, price, image); le snapshot reste intact."""
    items = order.get("items") or []
    if catalog is None:
        catalog = products_by_id(line.get("product_id") for line in items)
    return {
        **order,
        "items": [
            {**line, "product": product_summary(catalog.get(str(line.get("product_id"))), ORDER_SUMMARY_FIELDS)}
            for line in items
        ],
    }

def _present_many(orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    catalog = products_by_id(line.get("product_id") for o in orders for line in (o.get("items") or []))
    return [present_order(o, catalog) for o in orders]

def create_order(user_id: str, shipping_address: Dict[str, Any], payment_method: str, notes: str = "") -> Dict[str, Any]:
    """Checkout direct: commande en attente de paiement (payment_status/order_status = pending)."""
    cart = cart_repo.get_cart_by_user(user_id)
    return place_order(
        cart,
        shipping_address,
        {"payment_method": payment_method, "payment_status": "pending", "order_status": "pending", "notes": notes},
    )

def list_orders(user_id: str) -> List[Dict[str, Any]]:
    return _present_many(repository.list_orders_for_user(user_id))

def list_all_orders(limit: int = 100) -> List[Dict[str, Any]]:
    return _present_many(repository.list_all_orders(limit=limit))

def get_order(user_id: str, order_id: str) -> Dict[str, Any]:
    order = repository.get_order(order_id, user_id=user_id)
    if not order:
        raise NotFound("Order not found")
    return present_order(order)

def update_order_status(
    order_id: str,
    order_status: Optional[str] = None,
    tracking_number: Optional[str] = None,
    payment_status: Optional[str] = None,
) -> Dict[str, Any]:
    """Mise à jour administrateur des champs mutables (statuts, suivi)."""
    if not repository.get_order(order_id):
        raise NotFound("Order not found")
    changes: Dict[str, Any] = {}
    if order_status:
        changes["order_status"] = order_status
    if tracking_number:
        changes["tracking_number"] = tracking_number
    if payment_status:
        changes["payment_status"] = payment_status
    if not changes:
        raise ValidationError("Aucun champ à mettre à jour")
    updated = repository.update_order(order_id, changes)
    if not updated:
        raise InternalError("Impossible de mettre à jour la commande")
    logger.info("orders.update_status id=%s changes=%s", order_id, changes)
    return present_order(updated)
