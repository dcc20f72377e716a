"""
Gestionnaires d'exceptions utilisés par la factory.
- ShopError (et sous-classes): JSON {detail, code, ...extra} avec le statut de l'erreur.
- Validation de requête FastAPI: 422 VALIDATION_ERROR avec la liste des erreurs.
- HTTPException (404 de routing, 429 fastapi-limiter, ...): code machine dérivé du statut.
- Toute autre exception: 500 INTERNAL_ERROR générique, tracée avec logger.exception.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.utils.errors import ShopError

logger = logging.getLogger(__name__)

HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "NOT_AUTHENTICATED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    429: "RATE_LIMITED",
}

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShopError)
    async def shop_error_handler(request: Request, exc: ShopError):
        if exc.status_code >= 500:
            logger.error("%s %s -> %s %s", request.method, request.url.path, exc.code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "detail": "Invalid request data",
                "code": "VALIDATION_ERROR",
                "errors": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "code": HTTP_CODES.get(exc.status_code, "HTTP_ERROR")},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "code": "INTERNAL_ERROR"},
        )
