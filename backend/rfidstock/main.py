"""
RFID Stock - Main FastAPI Application
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rfidstock.config import settings
from rfidstock.exceptions import AccessLayerError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Multi-tenant RFID inventory: tenant resolution, access control and permissions",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AccessLayerError)
async def access_layer_exception_handler(request: Request, exc: AccessLayerError):
    return JSONResponse(status_code=exc.http_status, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies, unknown modules and missing query parameters are 400s."""
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "errors": errors},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


@app.on_event("startup")
def create_master_schema():
    """Create control-plane tables when AUTO_CREATE_MASTER_SCHEMA is set (dev/demo)."""
    if not settings.AUTO_CREATE_MASTER_SCHEMA:
        return
    from rfidstock import models  # noqa: F401  registers tables on MasterBase
    from rfidstock.database_master import MasterBase, master_engine

    MasterBase.metadata.create_all(bind=master_engine)
    logger.info("Master schema ensured on %s", master_engine.url.render_as_string(hide_password=True))


@app.on_event("shutdown")
def close_tenant_pools():
    from rfidstock.services.tenant_context import dispose_tenant_engines

    dispose_tenant_engines()


# Import and include routers
from rfidstock.api import admin_users_router, permissions_router, user_permissions_router  # noqa: E402

app.include_router(permissions_router, prefix="/api", tags=["Permission Management (Admin)"])
app.include_router(admin_users_router, prefix="/api", tags=["User Hierarchy (Admin)"])
app.include_router(user_permissions_router, prefix="/api/user-permissions", tags=["User Permissions"])
