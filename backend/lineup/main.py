# backend/lineup/main.py

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lineup import config

# ---------------------------
# Logging
# ---------------------------
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Import database
from lineup import models  # noqa: F401,E402  (registers tables)
from lineup.db import Base, engine  # noqa: E402

# Import routers
from lineup.routers import (  # noqa: E402
    session as session_router,
    players,
    coaches,
    coach_requests,
    ui,
)

# ---------------------------
# Create database tables
# ---------------------------
# This will create all tables from models.py if they don't exist
Base.metadata.create_all(bind=engine)

# ---------------------------
# FastAPI app initialization
# ---------------------------
app = FastAPI(
    title="Team Lineup Manager",
    description="Roster of players and coaches, with coach access requests approved by admins.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# ---------------------------
# CORS setup (allow frontend domains)
# ---------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

# ---------------------------
# Include routers
# ---------------------------
routers = [
    session_router.router,
    players.router,
    coaches.router,
    coach_requests.router,
    ui.router
]

for r in routers:
    app.include_router(r)

logger.info("Team Lineup Manager API ready")


if __name__ == "__main__":
    uvicorn.run("lineup.main:app", host="0.0.0.0", port=8000)
