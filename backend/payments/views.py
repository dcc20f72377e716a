import logging
from typing import Any, Dict

from fastapi import APIRouter, Request, Depends

from backend.orders.models import PaymentIntentRequest
from backend.utils.security import require_user
from backend.utils.rate_limit import optional_rate_limit
from backend.payments import stripe_client
from backend.payments import service as payments_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

# module backend.payments.views
@router.post("/create-payment-intent", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_payment_intent(req: PaymentIntentRequest, user: Dict[str, Any] = Depends(require_user)):
    """
    Crée un PaymentIntent Stripe pour le panier de l'utilisateur authentifié.
    - Sécurité: require_user + rate limit (10 req / 60s)
    - Réponse: {client_secret, payment_intent_id, amount}
    - Erreurs: 400 panier vide / stock insuffisant, 502 si Stripe échoue
    """
    return payments_service.create_payment_intent(user["id"], req.shipping_address.model_dump(), req.notes)

async def verified_event(request: Request) -> Dict[str, Any]:
    """Dépendance: lit le corps brut et vérifie Stripe-Signature (400 INVALID_SIGNATURE sinon)."""
    return await stripe_client.parse_event(request)

@router.post("/webhook", include_in_schema=False)
def webhook_stripe(event: Dict[str, Any] = Depends(verified_event)):
    """
    Webhook Stripe (PaymentIntent).
    - Signature: corps brut + Stripe-Signature, vérifiés avant tout parsing (400 INVALID_SIGNATURE sinon)
    - Réponse: {"received": true} une fois l'événement vérifié, même si son traitement échoue
    """
    logger.info("payments.webhook received type=%s id=%s", event.get("type"), event.get("id"))
    return payments_service.handle_event(event)

@router.get("/payment/{payment_intent_id}")
def get_payment(payment_intent_id: str, user: Dict[str, Any] = Depends(require_user)):
    """
    Vérifie un paiement et renvoie la commande associée.
    - 400 PAYMENT_NOT_COMPLETED si l'intent n'est pas 'succeeded'
    - 404 si aucune commande de l'utilisateur ne référence cet intent
    """
    return payments_service.get_payment_order(user["id"], payment_intent_id)
