"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Initialise FastAPILimiter (Redis) avec options de test (fakeredis).
- Construit le limiteur d'échecs de connexion (app.state.login_limiter).
- Variables d'environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: désactive complètement le throttling (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l'init échoue
"""
import os
import logging
import redis.asyncio as aioredis
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from backend.config import (
    LOGIN_LIMITER_BACKEND,
    LOGIN_LOCKOUT_SECONDS,
    MAX_FAILED_LOGIN_ATTEMPTS,
    RATE_LIMIT_REDIS_URL,
)
from backend.utils.rate_limit import LoginAttemptLimiter, RedisAttemptStore, build_login_limiter

def _login_limiter(use_fake: bool) -> LoginAttemptLimiter:
    if use_fake and LOGIN_LIMITER_BACKEND == "redis":
        import fakeredis
        store = RedisAttemptStore(fakeredis.FakeRedis(decode_responses=True))
        return LoginAttemptLimiter(store, MAX_FAILED_LOGIN_ATTEMPTS, LOGIN_LOCKOUT_SECONDS)
    return build_login_limiter(
        LOGIN_LIMITER_BACKEND, MAX_FAILED_LOGIN_ATTEMPTS, LOGIN_LOCKOUT_SECONDS, RATE_LIMIT_REDIS_URL
    )

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Configure le rate limiting et gère les fallbacks.
    - En cas d'échec de Redis et sans fallback, le throttling est désactivé proprement.
    - Les logs indiquent l'état effectif (enabled/disabled) pour observabilité.
    """
    logger = logging.getLogger("uvicorn.error")
    use_fake = os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1"

    app.state.login_limiter = _login_limiter(use_fake)
    logger.info("Login limiter ready (store=%s)", type(app.state.login_limiter.store).__name__)

    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
        yield
        return

    try:
        if use_fake:
            from fakeredis.aioredis import FakeRedis
            r = FakeRedis(decode_responses=True)
        else:
            r = aioredis.from_url(RATE_LIMIT_REDIS_URL, encoding="utf-8", decode_responses=True)

        await FastAPILimiter.init(r)
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
    except Exception as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning("Rate limiting falling back to local in-memory due to init error: %s", e)
        else:
            app.state.rate_limit_enabled = False
            logger.warning("Rate limiting disabled due to init error: %s", e)

    yield
