"""
Cas d'usage 'payments': orchestre panier, tarification, Stripe et commandes.
- create_payment_intent: mêmes préconditions que le checkout direct, aucune écriture;
  le PaymentIntent transporte (user_id, cart_id, shipping_address) en metadata.
- handle_event: réconciliation asynchrone pilotée par le webhook (événement déjà vérifié).
"""
from decimal import Decimal
from typing import Any, Dict, Optional
import logging

from backend.cart import repository as cart_repo
from backend.cart.logic import cart_total
from backend.orders import pricing
from backend.orders import repository as orders_repo
from backend.orders import service as orders_service
from backend.utils.errors import EmptyCart, NotFound, PaymentIncomplete, ShopError
from . import metadata as meta
from . import stripe_client

logger = logging.getLogger(__name__)

SUCCEEDED = "payment_intent.succeeded"
FAILED = "payment_intent.payment_failed"

def create_payment_intent(user_id: str, shipping_address: Dict[str, Any], notes: str = "") -> Dict[str, Any]:
    """
    Prépare le paiement du panier courant.
    - EmptyCart / InsufficientStock comme le checkout direct (vérification sans réservation).
    - Montant envoyé à Stripe en unités mineures; montant renvoyé en unités majeures.
    - Aucune commande n'est créée ici: le webhook s'en charge.
    """
    cart = cart_repo.get_cart_by_user(user_id)
    items = (cart or {}).get("items") or []
    if not cart or not items:
        raise EmptyCart()
    orders_service.check_stock(items)

    totals = pricing.compute_totals(cart_total(items))
    amount = pricing.to_minor_units(totals["total"])
    intent = stripe_client.create_payment_intent(
        amount=amount,
        metadata=meta.make_intent_metadata(user_id, cart["id"], shipping_address, notes),
    )
    logger.info("payments.intent created id=%s user_id=%s amount=%s", intent.get("id"), user_id, amount)
    return {
        "client_secret": intent.get("client_secret"),
        "payment_intent_id": intent.get("id"),
        "amount": float(Decimal(amount) / 100),
    }

def finalize_payment(intent: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Paiement réussi: recrée la commande depuis le panier référencé par les métadonnées.
    - Même cœur que le checkout direct (orders_service.place_order) avec
      payment_method=stripe, payment_status=completed, order_status=confirmed.
    - Panier introuvable: log et abandon (None).
    """
    intent_id = intent.get("id")
    user_id, cart_id, shipping_address, notes = meta.extract_intent_metadata(intent)
    cart = cart_repo.get_cart(cart_id, user_id)
    if not cart:
        logger.error("payments.finalize cart not found cart_id=%s user_id=%s pi=%s", cart_id, user_id, intent_id)
        return None
    if not shipping_address:
        # Commande payée: enregistrée malgré tout, l'adresse est à reprendre manuellement
        logger.error("payments.finalize missing or unreadable shipping address pi=%s user_id=%s", intent_id, user_id)

    # Pas de déduplication: un rejeu est seulement signalé
    if orders_repo.find_by_payment_id(intent_id):
        logger.warning("payments.finalize replay detected pi=%s (order already recorded)", intent_id)

    order = orders_service.place_order(
        cart,
        shipping_address,
        {
            "payment_method": "stripe",
            "payment_status": "completed",
            "order_status": "confirmed",
            "stripe_payment_id": intent_id,
            "notes": notes,
        },
    )
    logger.info("payments.finalize order created id=%s pi=%s", order.get("id"), intent_id)
    return order

def handle_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Dispatch d'un événement Stripe vérifié.
    - payment_intent.succeeded: finalize_payment; les échecs sont loggés et absorbés
      (le rejeu côté Stripe sert de reprise).
    - payment_intent.payment_failed: observé uniquement, aucun changement d'état.
    - Autres types: acquittés sans action.
    """
    event_type = (event or {}).get("type")
    intent = ((event or {}).get("data") or {}).get("object") or {}
    if event_type == SUCCEEDED:
        try:
            finalize_payment(intent)
        except ShopError as e:
            logger.error("payments.webhook finalize failed pi=%s code=%s: %s", intent.get("id"), e.code, e.message)
        except Exception:
            logger.exception("payments.webhook finalize crashed pi=%s", intent.get("id"))
    elif event_type == FAILED:
        logger.info("payments.webhook payment failed pi=%s", intent.get("id"))
    else:
        logger.info("payments.webhook unhandled event type %s", event_type)
    return {"received": True}

def get_payment_order(user_id: str, payment_intent_id: str) -> Dict[str, Any]:
    """Vérifie auprès de Stripe que le paiement est abouti puis renvoie la commande associée."""
    intent = stripe_client.retrieve_payment_intent(payment_intent_id)
    if intent.get("status") != "succeeded":
        raise PaymentIncomplete()
    order = orders_repo.find_by_payment_id(payment_intent_id, user_id=user_id)
    if not order:
        raise NotFound("Order not found")
    return orders_service.present_order(order)
