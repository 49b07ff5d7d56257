"""Application entry point for the BTF Care Plan API.

Defines the FastAPI app, its middleware stack (request logging, access
control, signed session cookie, CORS), exception handlers, and includes the
API routers. The `lifespan` handler initializes the DB on startup.
"""

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.middleware.sessions import SessionMiddleware
from contextlib import asynccontextmanager

from core import config
from core.access_control import access_control_middleware
from core.error_handlers import register_exception_handlers
from core.exceptions import DatabaseError
from core.logger import get_logger
from database import init_db
from database.deps import get_db_read
from api.auth import router as auth_router
from api.generation import router as generation_router
from api.rd_management import router as rd_management_router
from api.patient_area import router as patient_area_router
from api.rd_area import router as rd_area_router

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Fastapi lifespan context: initialize resources before serving requests."""
    init_db()
    yield


app = FastAPI(title="BTF Care Plan API", version="1.0.0", lifespan=lifespan)

register_exception_handlers(app)


async def log_requests(request: Request, call_next):
    """Log incoming requests and their responses."""
    logger.info("%s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("Request error: %s %s", request.method, request.url.path)
        raise
    logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response


# Middleware added last runs first: CORS -> session -> access control -> logging
app.middleware("http")(log_requests)
app.middleware("http")(access_control_middleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=config.SESSION_SECRET_KEY,
    session_cookie=config.SESSION_COOKIE_NAME,
    same_site="lax",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health(db: Session = Depends(get_db_read)):
    """Return basic health status and database connectivity.

    Raises:
        DatabaseError: If database connection fails.
    """
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except Exception:
        logger.exception("Health check failed")
        raise DatabaseError("Database health check failed", operation="health_check")


app.include_router(auth_router)
app.include_router(generation_router)
app.include_router(rd_management_router)
app.include_router(patient_area_router)
app.include_router(rd_area_router)


if __name__ == "__main__":
    # Allow starting the app via `python ./main.py`
    try:
        import uvicorn
    except ImportError as exc:
        raise RuntimeError("uvicorn is required to run the app. Install with `pip install uvicorn[standard]`.") from exc

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
