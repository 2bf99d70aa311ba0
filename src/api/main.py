"""
FastAPI application - Main entry point

Run locally:
  uvicorn src.api.main:app --host 127.0.0.1 --port 8000
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.dependencies import build_services
from src.api.endpoints.contracts import router as contracts_router
from src.api.endpoints.payments import payments_api
from src.error_handler import ErrorHandler
from src.escrow.errors import EscrowError, InvalidRequestError
from src.integrations.contracts.interfaces import PaymentGatewayClient
from src.integrations.policy.response_wrappers import IntegrationResponseError
from src.utils.escrow_config_loader import EscrowConfig, load_escrow_config

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

error_handler = ErrorHandler()


def create_app(
    config: Optional[EscrowConfig] = None,
    gateway: Optional[PaymentGatewayClient] = None,
    amount_cache=None,
) -> FastAPI:
    """
    Build the escrow API.

    ``gateway`` and ``amount_cache`` override the implementations that would
    otherwise be picked from config (tests pass the mock gateway here).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = config or load_escrow_config()
        app.state.services = build_services(cfg, gateway=gateway, amount_cache=amount_cache)
        logger.info(
            "Escrow API started (sandbox=%s callback=%s)",
            cfg.gateway.sandbox, cfg.callback.base_url,
        )
        try:
            yield
        finally:
            await app.state.services.aclose()

    app = FastAPI(
        title="Contract Escrow API",
        description="Contracts with escrowed payments reconciled against a payment gateway",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(contracts_router, prefix="/api")
    app.include_router(payments_api, prefix="/api")

    @app.exception_handler(EscrowError)
    async def escrow_error_handler(request: Request, exc: EscrowError):
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = [
            {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        summary = "; ".join(f"{f['field']}: {f['message']}" for f in fields)
        error = InvalidRequestError(f"Invalid request: {summary}", payload={"fields": fields})
        logger.info("%s %s -> %s", request.method, request.url.path, error.message)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(IntegrationResponseError)
    async def integration_error_handler(request: Request, exc: IntegrationResponseError):
        logger.error("Gateway response validation failed on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=502,
            content={
                "success": False,
                "message": str(exc),
                "code": "partner_response_validation",
                "errors": exc.payload,
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        body = error_handler.handle_exception(exc, context={"path": request.url.path, "method": request.method})
        return JSONResponse(status_code=500, content=body)

    @app.get("/health", tags=["Health"])
    async def health(request: Request):
        services = request.app.state.services
        return {
            "status": "ok",
            "gateway": type(services.gateway).__name__,
            "sandbox": services.config.gateway.sandbox,
            "cache": "connected" if services.amount_cache.ping() else "disconnected",
        }

    return app


app = create_app()
