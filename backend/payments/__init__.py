"""
Module 'payments' (feature-first): point d'entrée public.
Réunit metadata Stripe, client Stripe et services (PaymentIntent, webhook).
"""

from .metadata import make_intent_metadata, extract_intent_metadata
from .stripe_client import require_stripe, create_payment_intent as create_stripe_intent, retrieve_payment_intent, parse_event, verify_event
from .service import create_payment_intent, finalize_payment, handle_event, get_payment_order

__all__ = [
    # metadata
    "make_intent_metadata",
    "extract_intent_metadata",
    # stripe
    "require_stripe",
    "create_stripe_intent",
    "retrieve_payment_intent",
    "parse_event",
    "verify_event",
    # services
    "create_payment_intent",
    "finalize_payment",
    "handle_event",
    "get_payment_order",
]
