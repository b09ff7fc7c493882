from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .settings import settings
from .api.routes import router as api_router
from .index.errors import InvalidQuerySyntax, MalformedRecord, QueryValidationError
from .services.ingestion_service import reindex

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="BookingSearch", debug=settings.app_env != "production")


@app.on_event("startup")
def _build_index():
    # Hard fail if the configured snapshot cannot be loaded
    res = reindex()
    logger.info("Startup index ready: %d bookings indexed, %d rejected", res["indexed"], len(res["rejected"]))


@app.exception_handler(QueryValidationError)
async def _invalid_request(request: Request, exc: QueryValidationError):
    return JSONResponse({"detail": exc.errors}, status_code=400)


@app.exception_handler(InvalidQuerySyntax)
async def _invalid_query(request: Request, exc: InvalidQuerySyntax):
    return JSONResponse({"detail": str(exc), "term": exc.term}, status_code=400)


@app.exception_handler(MalformedRecord)
async def _malformed_record(request: Request, exc: MalformedRecord):
    return JSONResponse(
        {"detail": str(exc), "id": exc.record_id, "position": exc.position, "missing": exc.missing},
        status_code=422,
    )


# Include API router (search endpoints and health)
app.include_router(api_router)
