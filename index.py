import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.app_config import LOG_FILE, LOG_LEVEL, FRONTEND_URL, STATUS_POLL_INTERVAL_MS
from config.ai_models import DEFAULT_AI_MODEL, get_models_for_frontend
from config.device_presets import get_device_info_for_frontend, PREVIEW_SIZES, DEFAULT_PREVIEW
from config.tier_config import TIER_CONFIG
from jobs.client import get_job_runner
from models.mockup import DeviceType, UILibrary
from routes.auth import router as auth_router
from routes.users import router as users_router
from routes.mockups import router as mockups_router, jobs_router
from routes.dodo import router as dodo_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler(LOG_FILE)
    ]
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="UISketch Backend",
    description="AI-generated HTML/Tailwind UI mockups from natural-language prompts",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL, "http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["content-disposition"]
)

# Include routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(mockups_router)
app.include_router(jobs_router)
app.include_router(dodo_router)


@app.on_event("startup")
async def startup_event():
    """Hand runs no worker is attending to back to the queue."""
    try:
        resumed = await get_job_runner().resume_incomplete()
        logger.info(f"UISketch Backend started successfully ({resumed} job run(s) resumed)")
    except Exception as e:
        logger.error(f"Failed to initialize UISketch Backend: {e}", exc_info=True)
        raise

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "default_model": DEFAULT_AI_MODEL,
    }

@app.get("/api/options")
async def get_generation_options():
    """Selectors for the prompt input: devices, UI libraries, models and preview sizes."""
    return {
        "device_types": [d.value for d in DeviceType],
        "ui_libraries": [u.value for u in UILibrary],
        "models": get_models_for_frontend(),
        "default_model": DEFAULT_AI_MODEL,
        "devices": get_device_info_for_frontend(),
        "preview_sizes": PREVIEW_SIZES,
        "default_preview": DEFAULT_PREVIEW,
        "variation_counts": [1, 3],
        "plans": {
            plan: {"name": cfg["name"], "credits_limit": None if cfg["credits_limit"] == float('inf') else cfg["credits_limit"]}
            for plan, cfg in TIER_CONFIG.items()
        },
    }

@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "UISketch Backend API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "options": "/api/options",
            "auth": "/auth",
            "users": "/users",
            "mockups": "/mockups",
            "jobs": "/jobs/{run_id}",
            "billing": "/dodo",
        },
        "polling": {
            "status_endpoint": "/mockups/{mockup_id}/status",
            "interval_ms": STATUS_POLL_INTERVAL_MS,
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("index:app", host="0.0.0.0", port=8000)
