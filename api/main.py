"""
Ledge web API.

Subscriber onboarding and profile edits, matching, explore, starred bills
and published bill pages for The Daily Law site, plus the cron triggers
the scheduler calls with the shared secret.

Responsibility: Main API application setup and configuration
"""

# .env has to be loaded before ledge.config builds its settings
from dotenv import load_dotenv
load_dotenv('.env', override=True)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from ledge.config import settings
from ledge.db.session import db
from api.middleware import CronSecretMiddleware
from api.v1.endpoints import (
    bills,
    cron,
    explore,
    interests,
    matching,
    star,
    subscribers,
)

logging.basicConfig(
    level=getattr(logging, settings.app.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Ledge API",
    description="Legislative monitoring for The Daily Law",
    version=settings.app.app_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.app.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(CronSecretMiddleware)

ROUTERS = (
    (subscribers.router, "subscribers"),
    (matching.router, "matching"),
    (explore.router, "explore"),
    (interests.router, "interests"),
    (star.router, "starred"),
    (bills.router, "bills"),
    (cron.router, "cron"),
)

for router, tag in ROUTERS:
    app.include_router(router, prefix="/api", tags=[tag])


@app.on_event("startup")
async def open_database():
    logger.info(f"Starting Ledge API ({settings.app.environment.value})")
    if not settings.app.cron_secret:
        logger.warning("CRON_SECRET is not set; cron and import routes will reject every request")
    await db.initialize()
    await db.create_tables()


@app.on_event("shutdown")
async def close_database():
    await db.close()


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "ledge-api", "version": settings.app.app_version}


@app.exception_handler(Exception)
async def unhandled_error(request, exc):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    detail = str(exc) if settings.app.debug else "An unexpected error occurred"
    return JSONResponse(status_code=500, content={"error": "Internal server error", "detail": detail})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000)
