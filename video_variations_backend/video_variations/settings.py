import os
from dotenv import load_dotenv
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Load .env file if it exists (for local development)
env_path = os.path.join(os.path.dirname(__file__), "..", ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)
    logger.info("Loaded .env file for local development")
else:
    logger.info("No .env file found, using environment variables")

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")

WAVESPEED_API_KEY = os.getenv("WAVESPEED_API_KEY", "")
WAVESPEED_BASE_URL = os.getenv("WAVESPEED_BASE_URL", "https://api.wavespeed.ai/api/v3").rstrip("/")
WAVESPEED_MODEL_PATH = os.getenv("WAVESPEED_MODEL_PATH", "bytedance/seedance-v1-pro-fast/image-to-video")
WAVESPEED_POLL_INTERVAL_S = float(os.getenv("WAVESPEED_POLL_INTERVAL_S", "3"))
WAVESPEED_MAX_ATTEMPTS = int(os.getenv("WAVESPEED_MAX_ATTEMPTS", "60"))

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_TTS_MODEL = os.getenv("GEMINI_TTS_MODEL", "gemini-2.5-flash-preview-tts")
GEMINI_TTS_VOICE = os.getenv("GEMINI_TTS_VOICE", "Achernar")

AWS_REGION = os.getenv("AWS_REGION", "")
AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID", "")
AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY", "")
AWS_BUCKET_NAME = os.getenv("AWS_BUCKET_NAME", "")

TEMP_DIR = os.path.abspath(os.getenv("TEMP_DIR", "./temp"))
FFMPEG_BIN = os.getenv("FFMPEG_BIN", "ffmpeg")

# Crop uploaded reference images to 9:16 before storing them.
CROP_UPLOADS = os.getenv("CROP_UPLOADS", "").strip().lower() in ("1", "true", "yes")

# Comma-separated list of allowed origins for CORS (e.g., "https://app.vercel.app,https://www.example.com").
_allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "").strip()
if _allowed_origins_env:
    ALLOWED_ORIGINS = [o.strip() for o in _allowed_origins_env.split(",") if o.strip()]
else:
    ALLOWED_ORIGINS = ["*"]

def has_all_keys() -> bool:
    required = {
        "OPENAI_API_KEY": OPENAI_API_KEY,
        "WAVESPEED_API_KEY": WAVESPEED_API_KEY,
        "GEMINI_API_KEY": GEMINI_API_KEY,
        "AWS_REGION": AWS_REGION,
        "AWS_ACCESS_KEY_ID": AWS_ACCESS_KEY_ID,
        "AWS_SECRET_ACCESS_KEY": AWS_SECRET_ACCESS_KEY,
        "AWS_BUCKET_NAME": AWS_BUCKET_NAME,
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        logger.warning(f"Missing API keys: {', '.join(missing)}")
    return not missing
