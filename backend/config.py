"""
Configuration centrale du backend boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe), sécurité cookies, CORS/hosts
- Expose les constantes métier: frais de port, TVA, seuils de stock, verrouillage login
"""
from decimal import Decimal
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _decimal_env(name: str, default: str) -> Decimal:
    return Decimal(_clean_env(os.getenv(name) or default))

def _int_env(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name) or str(default)))
    except ValueError:
        return default

# Supabase: URL et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")
SUPABASE_TIMEOUT_SECONDS = _int_env("SUPABASE_TIMEOUT_SECONDS", 10)

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Stripe: clés, secret webhook, devise des PaymentIntents
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_CURRENCY = _clean_env(os.getenv("STRIPE_CURRENCY") or "pkr").lower()
STRIPE_TIMEOUT_SECONDS = _int_env("STRIPE_TIMEOUT_SECONDS", 10)

# Tarification du checkout (unités majeures)
FREE_SHIPPING_THRESHOLD = _decimal_env("FREE_SHIPPING_THRESHOLD", "5000")
SHIPPING_FLAT_FEE = _decimal_env("SHIPPING_FLAT_FEE", "200")
TAX_RATE = _decimal_env("TAX_RATE", "0.13")

# Catalogue / tableau de bord
LOW_STOCK_THRESHOLD = _int_env("LOW_STOCK_THRESHOLD", 5)
NEW_PRODUCTS_CATEGORY = _clean_env(os.getenv("NEW_PRODUCTS_CATEGORY") or "new")

# Réservation de stock: nombre de tentatives compare-and-set par ligne
STOCK_RESERVATION_ATTEMPTS = _int_env("STOCK_RESERVATION_ATTEMPTS", 3)

# Authentification: verrouillage après échecs de connexion
MAX_FAILED_LOGIN_ATTEMPTS = _int_env("MAX_FAILED_LOGIN_ATTEMPTS", 5)
LOGIN_LOCKOUT_SECONDS = _int_env("LOGIN_LOCKOUT_SECONDS", 15 * 60)
LOGIN_LIMITER_BACKEND = _clean_env(os.getenv("LOGIN_LIMITER_BACKEND") or "memory").lower()
ADMIN_EMAILS = [e.strip().lower() for e in os.getenv("ADMIN_EMAILS", "").split(",") if e.strip()]

# Cookies / HSTS
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

# Redis (rate limiting partagé)
RATE_LIMIT_REDIS_URL = _clean_env(os.getenv("RATE_LIMIT_REDIS_URL") or "redis://127.0.0.1:6379/0")
