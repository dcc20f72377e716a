"""
Logique panier pure (pas de Stripe, pas de DB).
Une ligne: {id, product_id, quantity, size, color, price}; (product_id, size, color) est unique dans un panier.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

# module backend.cart.logic
def to_decimal(value: Any) -> Decimal:
    """Convertit str|float|int|Decimal en Decimal (0 si vide ou invalide)."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value if value is not None else 0))
    except Exception:
        return Decimal("0")

def new_line(product: Dict[str, Any], quantity: int, size: str = "", color: str = "") -> Dict[str, Any]:
    """Nouvelle ligne avec le prix courant du produit figé (snapshot)."""
    return {
        "id": uuid4().hex,
        "product_id": str(product.get("id")),
        "quantity": int(quantity),
        "size": size or "",
        "color": color or "",
        "price": float(to_decimal(product.get("price"))),
    }

def find_line(items: List[Dict[str, Any]], product_id: str, size: str = "", color: str = "") -> Optional[Dict[str, Any]]:
    """Ligne correspondant au triplet (product_id, size, color), sinon None."""
    for line in items or []:
        if (
            str(line.get("product_id")) == str(product_id)
            and (line.get("size") or "") == (size or "")
            and (line.get("color") or "") == (color or "")
        ):
            return line
    return None

def find_line_by_id(items: List[Dict[str, Any]], item_id: str) -> Optional[Dict[str, Any]]:
    for line in items or []:
        if str(line.get("id")) == str(item_id):
            return line
    return None

def cart_total(items: List[Dict[str, Any]]) -> Decimal:
    """Somme prix unitaire figé × quantité."""
    return sum(
        (to_decimal(line.get("price")) * int(line.get("quantity") or 0) for line in items or []),
        Decimal("0"),
    )

def item_count(items: List[Dict[str, Any]]) -> int:
    return sum(int(line.get("quantity") or 0) for line in items or [])
