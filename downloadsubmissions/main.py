# FastAPI entry point for the quiz essay submissions export
# downloadsubmissions/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import os
import sys

# Add project root to sys.path to allow for absolute imports
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from downloadsubmissions.endpoints import downloadsubmissions as downloadsubmissions_router
from downloadsubmissions.utils.config import settings
from downloadsubmissions.utils.logger import logger
from downloadsubmissions.utils.db import engine
from downloadsubmissions.models.lms import Base

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    logger.info("Download Submissions API starting up...")

    # Create database tables if they don't exist
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    os.makedirs(settings.temp_dir, exist_ok=True)
    logger.info(f"Archives will be packed in {settings.temp_dir}")

    logger.info("Startup complete.")
    yield
    logger.info("Download Submissions API shutting down...")
    await engine.dispose()

# --- FastAPI App Initialization ---
app = FastAPI(
    title="Quiz Download Submissions API",
    description="Exports essay question attachments and text responses of a quiz as a zip archive.",
    version="1.0.0",
    lifespan=lifespan
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this to your frontend's domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- API Routers ---
# The prefix is defined within the router to include the quiz_id path parameter
app.include_router(downloadsubmissions_router.router)

# --- Root Endpoint ---
@app.get("/")
async def root():
    return {"message": "Welcome to the Quiz Download Submissions API"}
