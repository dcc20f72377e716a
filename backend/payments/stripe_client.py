"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
- Les erreurs SDK sont converties en PaymentProviderError (502, sans détail sensible).
- La signature du webhook est vérifiée sur le corps brut, avant tout parsing JSON.
"""
import json
import logging
import stripe
from typing import Any, Dict
from fastapi import Request

from backend.config import STRIPE_SECRET_KEY, STRIPE_TIMEOUT_SECONDS, STRIPE_WEBHOOK_SECRET, STRIPE_CURRENCY
from backend.utils.errors import InvalidSignature, PaymentProviderError

logger = logging.getLogger(__name__)

_configured = False

# module backend.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - stripe.api_key depuis STRIPE_SECRET_KEY si disponible.
    - Timeout réseau STRIPE_TIMEOUT_SECONDS, aucun retry automatique.
    """
    global _configured
    if STRIPE_SECRET_KEY:
        stripe.api_key = STRIPE_SECRET_KEY
    if not _configured:
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(timeout=STRIPE_TIMEOUT_SECONDS)
        _configured = True
    return stripe

def create_payment_intent(*, amount: int, metadata: Dict[str, str], currency: str = STRIPE_CURRENCY) -> Dict[str, Any]:
    """
    Crée un PaymentIntent.
    - amount: entier en unités mineures
    - metadata: {"user_id", "cart_id", "shipping_address"(JSON), "notes"}
    Retour: {"id", "client_secret", "status", "amount"}
    """
    require_stripe()
    try:
        intent = stripe.PaymentIntent.create(
            amount=amount,
            currency=currency,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
        )
    except stripe.StripeError as e:
        logger.error("stripe.PaymentIntent.create failed: %s", e)
        raise PaymentProviderError("Failed to create payment intent")
    return {
        "id": intent.id,
        "client_secret": intent.client_secret,
        "status": intent.status,
        "amount": intent.amount,
    }

def retrieve_payment_intent(payment_intent_id: str) -> Dict[str, Any]:
    require_stripe()
    try:
        intent = stripe.PaymentIntent.retrieve(payment_intent_id)
    except stripe.StripeError as e:
        logger.error("stripe.PaymentIntent.retrieve failed id=%s: %s", payment_intent_id, e)
        raise PaymentProviderError("Failed to verify payment")
    return {"id": intent.id, "status": intent.status, "amount": intent.amount}

def verify_event(payload: bytes, sig_header: str | None, secret: str | None = None) -> Dict[str, Any]:
    """
    Vérifie la signature Stripe (Stripe-Signature) du corps brut puis décode l'événement.
    - Signature absente/invalide, secret manquant ou JSON invalide: InvalidSignature.
    Retour: l'événement sous forme de dict.
    """
    secret = STRIPE_WEBHOOK_SECRET if secret is None else secret
    if not secret or not sig_header:
        raise InvalidSignature()
    try:
        stripe.WebhookSignature.verify_header(
            payload.decode("utf-8"), sig_header, secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
        )
        return json.loads(payload)
    except (stripe.SignatureVerificationError, ValueError) as e:
        logger.warning("Webhook signature verification failed: %s", e)
        raise InvalidSignature()

async def parse_event(request: Request) -> Dict[str, Any]:
    """
    Parse et valide un événement Stripe signé (webhook).
    - Lit le body brut + en-tête Stripe-Signature
    Retour: l'événement si la signature est valide.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    return verify_event(payload, sig_header)
