import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from synoptics.config import CORS_ORIGINS
from synoptics.errors import (
    ConflictError,
    DanglingReferenceError,
    NotFoundError,
    SynopticsError,
    UnauthorizedError,
    ValidationError,
)
from synoptics.logging_config import setup_logging
from synoptics.routes.equipment import router as equipment_router
from synoptics.routes.hierarchy import router as hierarchy_router
from synoptics.routes.layouts import router as layouts_router
from synoptics.routes.media import router as media_router
from synoptics.routes.nodes import router as nodes_router
from synoptics.routes.placement import router as placement_router

# Initialize logging before anything else
setup_logging()
logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[SynopticsError], int] = {
    NotFoundError: 404,
    ValidationError: 400,
    DanglingReferenceError: 422,
    ConflictError: 409,
    UnauthorizedError: 401,
}

app = FastAPI(title="Medical Gas Synoptics", version="0.1.0")
logger.info("FastAPI app created")

# Include routers
app.include_router(hierarchy_router)
app.include_router(equipment_router)
app.include_router(nodes_router)
app.include_router(placement_router)
app.include_router(layouts_router)
app.include_router(media_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)


@app.exception_handler(SynopticsError)
async def synoptics_error_handler(request: Request, exc: SynopticsError) -> JSONResponse:
    status = ERROR_STATUS.get(type(exc), 500)
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {status} {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=status,
        content={"error": exc.code, "message": exc.message, "details": exc.details},
    )


@app.on_event("startup")
async def startup_event():
    logger.info("Medical Gas Synoptics starting up")
    logger.info("API docs available at http://localhost:8000/docs")


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}
