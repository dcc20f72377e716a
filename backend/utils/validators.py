import re
from datetime import date
from typing import Optional

USERNAME_RE = re.compile(r"^[A-Za-z0-9_.@+-]{3,50}$")

def validate_password_strength(v: str) -> str:
    if len(v or "") < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r'[A-Z]', v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r'[a-z]', v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r'\d', v):
        raise ValueError("Password must contain at least one digit")
    return v

def validate_username(v: str) -> str:
    v = (v or "").strip()
    if not USERNAME_RE.match(v):
        raise ValueError("Username must be 3-50 characters (letters, digits, _ . @ + -)")
    return v

def parse_iso_date(v: Optional[str]) -> Optional[str]:
    """Normalise une date ISO (YYYY-MM-DD ou datetime ISO); ValueError si illisible."""
    if v is None or v == "":
        return None
    return date.fromisoformat(str(v).strip()[:10]).isoformat()
