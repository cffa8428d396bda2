"""Main application entry point."""

import logging
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.billing import router as billing_router
from src.config.billing_config import get_billing_config
from src.services.billing import BillingEngine, create_billing_engine
from src.services.errors import (
    BillingError,
    BillingValidationError,
    NotFoundError,
    StorageError,
)
from src.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


def _error_response(status_code: int, error: BillingError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error.code, "detail": error.message},
    )


def create_app(engine: Optional[BillingEngine] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        engine: Billing engine to serve; built from configuration when None
    """
    app = FastAPI(
        title="Club Fees",
        description="Member billing and balance engine",
        version="0.1.0",
    )
    app.state.billing_engine = engine or create_billing_engine(get_billing_config())
    app.include_router(billing_router)

    @app.exception_handler(BillingValidationError)
    async def validation_error_handler(request: Request, exc: BillingValidationError):
        logger.info(f"Validation error on {request.url.path}: {exc.code} ({exc.message})")
        return _error_response(400, exc)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(404, exc)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(f"Storage error on {request.url.path}: {exc.message}")
        return _error_response(503, exc)

    return app


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Club Fees billing API")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    args = parser.parse_args()

    # Load environment variables before the config is first built
    load_dotenv()
    config = get_billing_config()
    setup_server_logging(config.log_file)

    logger.info(f"Starting billing API on {args.host}:{args.port}")
    uvicorn.run(create_app(create_billing_engine(config)), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
