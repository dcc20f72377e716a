"""
Cas d'usage 'cart': un panier actif par utilisateur, créé à la première insertion.
- Le stock est vérifié (lecture) à chaque ajout/mise à jour, jamais décrémenté ici.
- Le prix unitaire est figé dans la ligne au moment de l'ajout.
"""
from typing import Any, Dict, List
import logging

from backend.cart import logic
from backend.cart import repository
from backend.products import repository as products_repo
from backend.products.service import products_by_id, product_summary, stock_of
from backend.utils.errors import InsufficientStock, InternalError, NotFound, ValidationError

logger = logging.getLogger(__name__)

def present_cart(cart: Dict[str, Any] | None) -> Dict[str, Any]:
    """
    Vue API du panier: lignes avec résumé produit (name, price, image, category, brand),
    total (prix figé × quantité) et nombre d'articles.
    """
    if not cart:
        return {"items": [], "total": 0, "item_count": 0}
    items: List[Dict[str, Any]] = list(cart.get("items") or [])
    catalog = products_by_id(line.get("product_id") for line in items)
    return {
        "id": cart.get("id"),
        "user_id": cart.get("user_id"),
        "items": [
            {**line, "product": product_summary(catalog.get(str(line.get("product_id"))))}
            for line in items
        ],
        "total": float(logic.cart_total(items)),
        "item_count": logic.item_count(items),
        "updated_at": cart.get("updated_at"),
    }

def _ensure_stock(product: Dict[str, Any], quantity: int) -> None:
    available = stock_of(product)
    if available < quantity:
        raise InsufficientStock(product.get("name") or "product", available, str(product.get("id")))

def _require_cart(user_id: str) -> Dict[str, Any]:
    cart = repository.get_cart_by_user(user_id)
    if not cart:
        raise NotFound("Cart not found")
    return cart

def _save(cart_id: str, items: List[Dict[str, Any]]) -> Dict[str, Any]:
    saved = repository.save_items(cart_id, items)
    if not saved:
        raise InternalError("Impossible d'enregistrer le panier")
    return saved

def get_cart(user_id: str) -> Dict[str, Any]:
    return present_cart(repository.get_cart_by_user(user_id))

def add_item(user_id: str, product_id: str, quantity: int = 1, size: str = "", color: str = "") -> Dict[str, Any]:
    """
    Ajoute un produit au panier.
    - 404 si le produit n'existe pas; InsufficientStock si quantity > stock.
    - Même (product_id, size, color): la quantité est cumulée et revérifiée contre le stock.
    """
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    product = products_repo.get_product(product_id)
    if not product:
        raise NotFound("Product not found")
    _ensure_stock(product, quantity)

    cart = repository.get_cart_by_user(user_id)
    if not cart:
        created = repository.create_cart(user_id, [logic.new_line(product, quantity, size, color)])
        if not created:
            raise InternalError("Impossible de créer le panier")
        logger.info("cart.create user_id=%s product_id=%s qty=%s", user_id, product_id, quantity)
        return present_cart(created)

    items = [dict(line) for line in cart.get("items") or []]
    existing = logic.find_line(items, product_id, size, color)
    if existing:
        new_quantity = int(existing.get("quantity") or 0) + quantity
        _ensure_stock(product, new_quantity)
        existing["quantity"] = new_quantity
    else:
        items.append(logic.new_line(product, quantity, size, color))
    return present_cart(_save(cart["id"], items))

def update_item(user_id: str, item_id: str, quantity: int) -> Dict[str, Any]:
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    cart = _require_cart(user_id)
    items = [dict(line) for line in cart.get("items") or []]
    line = logic.find_line_by_id(items, item_id)
    if not line:
        raise NotFound("Item not found in cart")
    product = products_repo.get_product(line.get("product_id"))
    if not product:
        raise NotFound("Product not found")
    _ensure_stock(product, quantity)
    line["quantity"] = quantity
    return present_cart(_save(cart["id"], items))

def remove_item(user_id: str, item_id: str) -> Dict[str, Any]:
    """Retire une ligne; idempotent si la ligne a déjà disparu."""
    cart = _require_cart(user_id)
    items = list(cart.get("items") or [])
    remaining = [line for line in items if str(line.get("id")) != str(item_id)]
    if len(remaining) == len(items):
        return present_cart(cart)
    return present_cart(_save(cart["id"], remaining))

def clear_cart(user_id: str) -> Dict[str, str]:
    """Vide la liste d'items sans supprimer le panier."""
    cart = _require_cart(user_id)
    if cart.get("items"):
        _save(cart["id"], [])
    return {"message": "Cart cleared successfully"}
