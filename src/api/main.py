"""
FastAPI application factory.
Creates the app with CORS, store initialization, router registration and the
static frontend fallback. Swagger UI available at /docs, ReDoc at /redoc.
"""
import sys
from pathlib import Path
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

# Ensure src/ is on the path
_src_dir = str(Path(__file__).parent.parent)
if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic for the FastAPI app."""
    import config
    from api import dependencies

    print(f"[API] Initializing Order Portal API on port {config.API_PORT}")

    # Tests inject a fake store before startup
    if not dependencies.is_initialized():
        from sheets.store import TabularStore
        dependencies.init_services(TabularStore())
        print("[API] Connected to Google Sheets")

    print(f"[API] Swagger UI: http://localhost:{config.API_PORT}/docs")

    yield

    print("[API] Shutting down API server")


def _register_static_fallback(app: FastAPI):
    """Unknown /api paths answer 404 JSON; everything else serves the frontend."""
    import config
    from api.helpers import failure_response
    from orders import messages

    static_root = Path(config.STATIC_DIR).resolve()

    @app.api_route(
        "/api/{rest:path}",
        methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        include_in_schema=False,
    )
    async def unknown_api(rest: str):
        return failure_response(404, messages.NOT_FOUND)

    @app.get("/{full_path:path}", include_in_schema=False)
    async def frontend(full_path: str):
        if full_path:
            candidate = (static_root / full_path).resolve()
            if candidate.is_file() and static_root in candidate.parents:
                return FileResponse(candidate)
        index = static_root / config.STATIC_INDEX_FILE
        if index.is_file():
            return FileResponse(index)
        return failure_response(404, messages.NOT_FOUND)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    import config
    from api.helpers import failure_response
    from orders import messages
    from orders.errors import PortalError
    from utils.logger import get_logger

    logger = get_logger()

    app = FastAPI(
        title="Branch Order Portal API",
        description=(
            "Order submission, approval and export for branch procurement, "
            "backed by Google Sheets.\n\n"
            "Callers identify themselves with `username` (query or body) after "
            "`/api/validateLogin`; approver endpoints require level L2."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.API_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return failure_response(400, messages.INCOMPLETE_DATA)

    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        if exc.status_code >= 500:
            logger.log_failure(request.url.path, exc)
            return failure_response(exc.status_code, messages.SYSTEM_ERROR)
        return failure_response(exc.status_code, exc.message)

    # Register routers
    from api.routes.auth_routes import router as auth_router
    from api.routes.catalog_routes import router as catalog_router
    from api.routes.approval_routes import router as approval_router
    from api.routes.report_routes import router as report_router
    from api.routes.export_routes import router as export_router
    from api.routes.health_routes import router as health_router

    app.include_router(auth_router, prefix="/api", tags=["Authentication"])
    app.include_router(catalog_router, prefix="/api", tags=["Branch Orders"])
    app.include_router(approval_router, prefix="/api", tags=["Approvals"])
    app.include_router(report_router, prefix="/api", tags=["Reports"])
    app.include_router(export_router, prefix="/api", tags=["Exports"])
    app.include_router(health_router, prefix="/health", tags=["Health"])

    # Must stay last: the fallback matches every path
    _register_static_fallback(app)

    return app
