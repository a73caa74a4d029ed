import os
import logging
import google.auth
from dotenv import load_dotenv

# Load .env for local dev
load_dotenv()

# --- CONFIGURATION ---
PROJECT_ID = os.environ.get("GOOGLE_CLOUD_PROJECT", os.environ.get("GCP_PROJECT_ID"))

# Fallback for Project ID if not injected
if not PROJECT_ID:
    try:
        _, PROJECT_ID = google.auth.default()
    except Exception as e:
        logging.warning(f"System: No default GCP credentials ({e}). Using sandbox project.")
        PROJECT_ID = None
    PROJECT_ID = PROJECT_ID or "sandbox-456821"

DEFAULT_MODEL_FALLBACK_ORDER = "gemini-2.5-flash,gemini-2.5-pro,gemini-2.0-flash"
MODEL_FALLBACK_ORDER = os.getenv("MODEL_FALLBACK_ORDER", DEFAULT_MODEL_FALLBACK_ORDER)

SAVE_DIR = os.getenv("SAVE_DIR", "./saves")
SAVE_SLOTS = int(os.getenv("SAVE_SLOTS", "3"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
# Cloud Run sets K_SERVICE
SERVICE_NAME = os.getenv("K_SERVICE", "wildlands")
WORLD_NAME = os.getenv("WORLD_NAME", "The Wildlands")

def get_model_fallback_order(raw: str = None) -> list:
    """
    Parses a comma separated model list into the order flows should try.
    Blank entries and repeats are dropped; first occurrence wins.
    """
    raw = MODEL_FALLBACK_ORDER if raw is None else raw
    order = []
    for name in raw.split(","):
        name = name.strip()
        if name and name not in order:
            order.append(name)
    return order
