"""
Taxonomie des erreurs métier de la boutique.
- Chaque erreur porte un statut HTTP, un code machine et un message lisible.
- Les handlers (backend.app_setup.exceptions) les rendent en JSON {detail, code, ...extra}.
- Les services lèvent ces erreurs; les vues les laissent remonter.
"""
from typing import Any, Dict, Optional


class ShopError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Erreur interne"

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None, extra: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        if code:
            self.code = code
        self.extra = extra or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "code": self.code}
        body.update(self.extra)
        return body


class NotFound(ShopError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Ressource introuvable"


class InsufficientStock(ShopError):
    status_code = 400
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_name: str, available: int, product_id: Optional[str] = None):
        self.product_name = product_name
        self.available = int(available)
        self.product_id = product_id
        super().__init__(
            f"Not enough stock for {product_name}. Only {self.available} available.",
            extra={"product_id": product_id, "product_name": product_name, "available": self.available},
        )


class EmptyCart(ShopError):
    status_code = 400
    code = "EMPTY_CART"
    default_message = "Cart is empty"


class InvalidSignature(ShopError):
    status_code = 400
    code = "INVALID_SIGNATURE"
    default_message = "Invalid webhook signature"


class ValidationError(ShopError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Données invalides"


class PaymentIncomplete(ShopError):
    status_code = 400
    code = "PAYMENT_NOT_COMPLETED"
    default_message = "Payment not completed"


class AuthenticationError(ShopError):
    status_code = 401
    code = "INVALID_TOKEN"
    default_message = "Non authentifié"


class PermissionDenied(ShopError):
    status_code = 403
    code = "INSUFFICIENT_PRIVILEGES"
    default_message = "Access denied. Administrator privileges required."


class RateLimited(ShopError):
    status_code = 429
    code = "RATE_LIMITED"
    default_message = "Too many failed attempts"


class PaymentProviderError(ShopError):
    status_code = 502
    code = "PAYMENT_PROVIDER_ERROR"
    default_message = "Payment provider unavailable"


class InternalError(ShopError):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Erreur interne"
