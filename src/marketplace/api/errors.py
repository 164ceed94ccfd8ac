"""Translate marketplace domain errors into JSON responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketplace.errors import InternalConsistencyFault, MarketplaceError

logger = structlog.get_logger(__name__)


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    if isinstance(exc, InternalConsistencyFault):
        logger.error("Consistency fault", path=request.url.path, **exc.to_dict())
    else:
        logger.info("Request rejected", path=request.url.path, error=exc.code, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_marketplace_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
