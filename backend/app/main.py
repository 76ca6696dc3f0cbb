# app/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.deps import status_for_kind
from app.core.config import get_settings
from app.core.errors import SchedulingError

#Import Routers
from app.api.v1 import practices
from app.api.v1 import comments
from app.api.v1 import calendar
from app.api.v1 import profile

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="PingPong Hub API",
    description="Table tennis practice scheduling",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    """Errors raised by the store outside the scheduler (comments, signups, feeds)."""
    logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=status_for_kind(exc.kind),
        content={"detail": {"success": False, "error": exc.message}},
    )

#Include routers
app.include_router(practices.router, prefix="/api")
app.include_router(comments.router, prefix="/api")
app.include_router(calendar.router, prefix="/api")
app.include_router(profile.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "PingPong Hub API",
        "version": "1.0.0",
        "status": "running"
    }

@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.app_env
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.app_env == "development"
    )
