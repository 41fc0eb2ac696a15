# config/tier_config.py

from typing import Dict, Any

from config.app_config import FREE_TIER_CREDITS, CREDITS_RESET_INTERVAL_DAYS

TIER_CONFIG: Dict[str, Dict[str, Any]] = {
    "free": {
        "name": "Free",
        "credits_limit": FREE_TIER_CREDITS,
        "credits_reset_interval_days": CREDITS_RESET_INTERVAL_DAYS,
    },
    "pro": {
        "name": "Pro",
        "credits_limit": float('inf'), # Represents unlimited
        "credits_reset_interval_days": None,
    },
}

def get_tier_features(plan: str) -> Dict[str, Any]:
    """Safely get the feature configuration for a given plan."""
    return TIER_CONFIG.get(plan, TIER_CONFIG["free"])

def is_unlimited(plan: str) -> bool:
    return get_tier_features(plan)["credits_limit"] == float('inf')
