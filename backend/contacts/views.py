from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from backend.utils.rate_limit import optional_rate_limit
from backend.utils.security import require_admin
from backend.contacts import service as contacts_service

router = APIRouter(prefix="/api/v1/contacts", tags=["Contacts API"])

class ContactRequest(BaseModel):
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: EmailStr
    subject: str = Field(max_length=200)
    message: str = Field(max_length=5000)
    phone: Optional[str] = Field(default="", max_length=30)

@router.post("", status_code=201, dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def submit_contact(req: ContactRequest):
    """Formulaire de contact public (rate limit 5 req / 60s)."""
    return contacts_service.submit_contact(
        req.first_name, req.last_name, req.email, req.subject, req.message, req.phone or ""
    )

@router.get("")
def list_contacts(admin: Dict[str, Any] = Depends(require_admin)):
    return contacts_service.list_contacts()
