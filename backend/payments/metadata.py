"""
Sérialisation/désérialisation des métadonnées Stripe d'un PaymentIntent (user_id, cart_id, shipping_address).
Seul lien entre la requête qui crée l'intent et le webhook qui finalise la commande.
"""
import json
from typing import Any, Dict, Optional, Tuple

from backend.utils.errors import ValidationError

# Limite Stripe: 500 caractères par valeur de metadata
MAX_VALUE_LENGTH = 500

# module backend.payments.metadata
def encode_shipping_address(shipping_address: Optional[Dict[str, Any]]) -> str:
    """
    JSON compact de l'adresse.
    - ValidationError si le JSON dépasse MAX_VALUE_LENGTH: un JSON tronqué serait illisible au webhook.
    """
    encoded = json.dumps(shipping_address or {}, separators=(",", ":"), ensure_ascii=False)
    if len(encoded) > MAX_VALUE_LENGTH:
        raise ValidationError(
            "Shipping address is too long",
            extra={"max_length": MAX_VALUE_LENGTH, "length": len(encoded)},
        )
    return encoded

def make_intent_metadata(user_id: str, cart_id: str, shipping_address: Dict[str, Any], notes: str = "") -> Dict[str, str]:
    """
    Métadonnées opaques embarquées dans le PaymentIntent.
    - shipping_address: JSON compact, jamais tronqué (ValidationError si trop long)
    - notes: texte libre tronqué à la limite Stripe
    """
    return {
        "user_id": str(user_id),
        "cart_id": str(cart_id),
        "shipping_address": encode_shipping_address(shipping_address),
        "notes": (notes or "")[:MAX_VALUE_LENGTH],
    }

def extract_intent_metadata(intent: Dict[str, Any]) -> Tuple[Optional[str], Optional[str], Dict[str, Any], str]:
    """
    Extrait (user_id, cart_id, shipping_address, notes) d'un PaymentIntent (objet d'un event webhook).
    - Tolérant aux erreurs: shipping_address = {} si le JSON est invalide.
    """
    meta = (intent or {}).get("metadata") or {} if isinstance(intent, dict) else {}
    raw_address = meta.get("shipping_address")
    try:
        address = json.loads(raw_address) if raw_address else {}
    except (TypeError, ValueError):
        address = {}
    if not isinstance(address, dict):
        address = {}
    return meta.get("user_id") or None, meta.get("cart_id") or None, address, meta.get("notes") or ""
