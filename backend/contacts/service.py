from datetime import datetime, timezone
from typing import Any, Dict
import logging

from backend.contacts import repository as contacts_repo
from backend.utils.errors import InternalError, ValidationError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("first_name", "last_name", "email", "subject", "message")

def submit_contact(first_name: str, last_name: str, email: str, subject: str, message: str, phone: str = "") -> Dict[str, Any]:
    """Enregistre un message de contact (append-only)."""
    data = {
        "first_name": (first_name or "").strip(),
        "last_name": (last_name or "").strip(),
        "email": (email or "").strip(),
        "subject": (subject or "").strip(),
        "message": (message or "").strip(),
        "phone": (phone or "").strip(),
    }
    if any(not data[k] for k in REQUIRED_FIELDS):
        raise ValidationError("All required fields must be provided")
    data["created_at"] = datetime.now(timezone.utc).isoformat()
    saved = contacts_repo.insert_contact(data)
    if saved is None:
        raise InternalError("Failed to submit contact message")
    logger.info("contacts.submit id=%s", saved.get("id"))
    return {"message": "Contact message submitted successfully", "contact": saved}

def list_contacts() -> Dict[str, Any]:
    return {"contacts": contacts_repo.list_contacts()}
