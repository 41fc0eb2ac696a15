"""
Runtime configuration for UISketch, read once from the environment.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# Logging
LOG_FILE = os.getenv("LOG_FILE", "uisketch.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# AI providers
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "xiaomi/mimo-v2-flash:free")
OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
GENERATION_TIMEOUT = int(os.getenv("GENERATION_TIMEOUT", "180"))  # seconds per provider call

# Background jobs
GENERATION_JOB_RETRIES = int(os.getenv("GENERATION_JOB_RETRIES", "3"))
GENERATION_JOB_CONCURRENCY = int(os.getenv("GENERATION_JOB_CONCURRENCY", "5"))
EDIT_JOB_RETRIES = int(os.getenv("EDIT_JOB_RETRIES", "2"))
EDIT_JOB_CONCURRENCY = int(os.getenv("EDIT_JOB_CONCURRENCY", "5"))
JOB_RETRY_BACKOFF_SECONDS = float(os.getenv("JOB_RETRY_BACKOFF_SECONDS", "2"))
# A run or slot whose lease lapses is taken over; must exceed GENERATION_TIMEOUT
JOB_LEASE_SECONDS = float(os.getenv("JOB_LEASE_SECONDS", "300"))
JOB_SLOT_WAIT_SECONDS = float(os.getenv("JOB_SLOT_WAIT_SECONDS", "5"))
JOB_SWEEP_INTERVAL_SECONDS = float(os.getenv("JOB_SWEEP_INTERVAL_SECONDS", "60"))

# Celery broker for the job worker
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL") or REDIS_URL

# Client polling
STATUS_POLL_INTERVAL_MS = int(os.getenv("STATUS_POLL_INTERVAL_MS", "2000"))

# Credits
FREE_TIER_CREDITS = int(os.getenv("FREE_TIER_CREDITS", "5"))
CREDITS_RESET_INTERVAL_DAYS = int(os.getenv("CREDITS_RESET_INTERVAL_DAYS", "30"))

# Read cache for mockup polling
MOCKUP_CACHE_TTL = float(os.getenv("MOCKUP_CACHE_TTL", "5"))

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
