"""
Limitation de débit.
- optional_rate_limit: throttling par route via fastapi-limiter (Redis), fallback mémoire en dev.
- LoginAttemptLimiter: verrouillage après échecs de connexion, injectable (store mémoire ou Redis).
"""
from typing import Optional, Dict, Any, Callable, Tuple
from fastapi import Request, HTTPException
import logging
import math
import os
import threading
import time
import hashlib

from backend.utils.errors import RateLimited

logger = logging.getLogger(__name__)

def client_identity(req: Request) -> str:
    return req.client.host if req.client else "local"

def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request):
        def _user_key_from_request(req: Request) -> str:
            # Priorité: jeton Bearer (hashé) puis IP
            auth_header = req.headers.get("Authorization", "")
            token = auth_header[7:].strip() if auth_header.startswith("Bearer ") else ""
            path = req.url.path
            if token:
                h = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
                return f"user:{h}:{path}"
            return f"ip:{client_identity(req)}:{path}"

        # Forcer le fallback mémoire en DEV si demandé
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            now = time.time()
            key = _user_key_from_request(request)
            store = getattr(request.app.state, "_rl_store", {})
            hits = [t for t in store.get(key, []) if now - t < seconds]
            if len(hits) >= times:
                raise HTTPException(status_code=429, detail="Too Many Requests")
            hits.append(now)
            store[key] = hits
            request.app.state._rl_store = store
            return

        # Respecter le flag global (lifespan sans Redis)
        if getattr(request.app.state, "rate_limit_enabled", None) is not True:
            return

        from fastapi_limiter.depends import RateLimiter
        async def _identifier(req: Request) -> str:
            return _user_key_from_request(req)
        try:
            return await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request)
        except HTTPException:
            raise
        except Exception:
            # Redis indisponible en cours de route: pas de 429 en prod
            logger.warning("rate limiter unavailable for %s", request.url.path, exc_info=True)
            return
    return _dep

# --- Verrouillage des connexions échouées ---

class InMemoryAttemptStore:
    """
    Compteurs d'échecs en mémoire (mono-instance).
    - Chaque clé expire lockout_seconds après le dernier échec; evict_expired() purge les clés échues.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Tuple[int, Optional[float]]:
        """Retourne (compteur, secondes restantes avant expiration)."""
        with self._lock:
            entry = self._entries.get(key)
            if not entry:
                return 0, None
            count, expires_at = entry
            remaining = expires_at - self._clock()
            if remaining <= 0:
                del self._entries[key]
                return 0, None
            return count, remaining

    def incr(self, key: str, ttl: int) -> int:
        with self._lock:
            now = self._clock()
            count, expires_at = self._entries.get(key, (0, now))
            if expires_at <= now:
                count = 0
            count += 1
            self._entries[key] = (count, now + ttl)
            return count

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def evict_expired(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [k for k, (_, exp) in self._entries.items() if exp <= now]
            for k in expired:
                del self._entries[k]
            return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RedisAttemptStore:
    """Compteurs partagés entre instances: INCR + EXPIRE (client redis synchrone)."""

    PREFIX = "login-fail:"

    def __init__(self, client):
        self._redis = client

    def get(self, key: str) -> Tuple[int, Optional[float]]:
        k = self.PREFIX + key
        raw = self._redis.get(k)
        if raw is None:
            return 0, None
        ttl = self._redis.ttl(k)
        return int(raw), (float(ttl) if ttl and ttl > 0 else None)

    def incr(self, key: str, ttl: int) -> int:
        k = self.PREFIX + key
        pipe = self._redis.pipeline()
        pipe.incr(k)
        pipe.expire(k, ttl)
        count, _ = pipe.execute()
        return int(count)

    def delete(self, key: str) -> None:
        self._redis.delete(self.PREFIX + key)

    def evict_expired(self) -> int:
        # Redis expire les clés lui-même
        return 0


class LoginAttemptLimiter:
    def __init__(self, store, max_attempts: int, lockout_seconds: int):
        self.store = store
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds

    def check(self, key: str) -> None:
        """Lève RateLimited si la clé a atteint max_attempts dans la fenêtre de verrouillage."""
        count, remaining = self.store.get(key)
        if count >= self.max_attempts:
            minutes = max(1, math.ceil((remaining or self.lockout_seconds) / 60))
            logger.warning("login locked key=%s attempts=%s", key, count)
            raise RateLimited(f"Too many failed attempts. Try again in {minutes} minutes.")

    def record_failure(self, key: str) -> int:
        self.store.evict_expired()
        return self.store.incr(key, self.lockout_seconds)

    def reset(self, key: str) -> None:
        self.store.delete(key)


def build_login_limiter(backend: str, max_attempts: int, lockout_seconds: int, redis_url: Optional[str] = None) -> LoginAttemptLimiter:
    """Construit le limiteur selon LOGIN_LIMITER_BACKEND ('memory' | 'redis')."""
    if backend == "redis" and redis_url:
        import redis
        store = RedisAttemptStore(redis.Redis.from_url(redis_url, decode_responses=True))
    else:
        store = InMemoryAttemptStore()
    return LoginAttemptLimiter(store, max_attempts, lockout_seconds)

def get_login_limiter(request: Request) -> LoginAttemptLimiter:
    """Dépendance FastAPI: limiteur posé sur app.state par le lifespan (créé à la volée sinon)."""
    limiter = getattr(request.app.state, "login_limiter", None)
    if limiter is None:
        from backend.config import MAX_FAILED_LOGIN_ATTEMPTS, LOGIN_LOCKOUT_SECONDS
        limiter = LoginAttemptLimiter(InMemoryAttemptStore(), MAX_FAILED_LOGIN_ATTEMPTS, LOGIN_LOCKOUT_SECONDS)
        request.app.state.login_limiter = limiter
    return limiter

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)

    from fastapi_limiter import FastAPILimiter
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None
    backend = "redis" if limiter_ready else None

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": backend,
        "local_fallback": os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1",
    }

    if backend == "redis":
        from urllib.parse import urlparse
        redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
        if redis_url:
            p = urlparse(redis_url)
            info["redis"] = {
                "scheme": p.scheme,
                "host": p.hostname,
                "port": p.port,
            }

    login_limiter = getattr(request.app.state, "login_limiter", None)
    if login_limiter is not None:
        info["login_limiter"] = {
            "store": type(login_limiter.store).__name__,
            "max_attempts": login_limiter.max_attempts,
            "lockout_seconds": login_limiter.lockout_seconds,
        }

    return info
