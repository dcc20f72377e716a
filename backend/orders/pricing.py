"""
Tarification et assemblage de commande (pur: pas de Stripe, pas de DB).
- compute_totals: sous-total -> frais de port, taxe, total.
- build_order: snapshot panier + adresse + paiement -> document commande.
Utilisé à l'identique par le checkout direct et par le webhook de paiement.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

from backend.cart.logic import cart_total, to_decimal
from backend.config import FREE_SHIPPING_THRESHOLD, SHIPPING_FLAT_FEE, TAX_RATE

CENT = Decimal("0.01")

DEFAULT_PAYMENT: Dict[str, Any] = {
    "payment_method": "cash_on_delivery",
    "payment_status": "pending",
    "order_status": "pending",
    "stripe_payment_id": None,
    "notes": "",
}

# module backend.orders.pricing
def money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)

def compute_totals(subtotal: Any) -> Dict[str, Decimal]:
    """
    - shipping_cost: 0 si subtotal > FREE_SHIPPING_THRESHOLD, sinon SHIPPING_FLAT_FEE
    - tax: subtotal × TAX_RATE (arrondi au centime)
    - total: subtotal + shipping_cost + tax
    """
    sub = money(subtotal)
    shipping_cost = Decimal("0.00") if sub > FREE_SHIPPING_THRESHOLD else money(SHIPPING_FLAT_FEE)
    tax = money(sub * TAX_RATE)
    return {
        "subtotal": sub,
        "shipping_cost": shipping_cost,
        "tax": tax,
        "total": sub + shipping_cost + tax,
    }

def to_minor_units(amount: Any) -> int:
    """Montant en unités mineures (centimes) pour le fournisseur de paiement."""
    return int((money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))

def order_line(line: Dict[str, Any]) -> Dict[str, Any]:
    """Ligne de commande: prix figé du panier, nom/image copiés depuis le résumé produit."""
    product = line.get("product") or {}
    return {
        "product_id": str(line.get("product_id")),
        "quantity": int(line.get("quantity") or 0),
        "size": line.get("size") or "",
        "color": line.get("color") or "",
        "price": float(money(line.get("price"))),
        "name": product.get("name") or "",
        "image": product.get("image") or "",
    }

def build_order(
    cart: Dict[str, Any],
    shipping_address: Optional[Dict[str, Any]],
    payment: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Assemble le document commande à partir d'un panier dont les lignes portent
    un résumé produit (clé "product"). Le sous-total vient des prix figés du panier,
    jamais du prix catalogue courant.
    """
    items = cart.get("items") or []
    details = {**DEFAULT_PAYMENT, **(payment or {})}
    totals = compute_totals(cart_total(items))
    return {
        "user_id": str(cart.get("user_id")),
        "items": [order_line(line) for line in items],
        "shipping_address": dict(shipping_address or {}),
        "subtotal": float(totals["subtotal"]),
        "shipping_cost": float(totals["shipping_cost"]),
        "tax": float(totals["tax"]),
        "total": float(totals["total"]),
        "payment_method": details["payment_method"],
        "payment_status": details["payment_status"],
        "order_status": details["order_status"],
        "stripe_payment_id": details["stripe_payment_id"],
        "tracking_number": None,
        "notes": details["notes"] or "",
    }
