"""Builds the provider handles once and wires them into the services."""
import logging
from . import settings
from .gemini_tts import GeminiNarrator
from .llm import ScriptPlanner, build_openai_client
from .media import MediaComposer
from .orchestrator import VariationOrchestrator
from .progress import ProgressChannel
from .storage import S3Uploader, build_s3_uploader
from .wavespeed_client import WaveSpeedClient

logger = logging.getLogger(__name__)

def build_gemini_client(api_key: str):
    if not api_key:
        logger.warning("GEMINI_API_KEY is not set; narration is disabled")
        return None
    from google import genai
    return genai.Client(api_key=api_key)

def build_uploader() -> S3Uploader:
    return build_s3_uploader(
        settings.AWS_REGION,
        settings.AWS_ACCESS_KEY_ID,
        settings.AWS_SECRET_ACCESS_KEY,
        settings.AWS_BUCKET_NAME,
    )

def build_orchestrator(progress: ProgressChannel, uploader: S3Uploader) -> VariationOrchestrator:
    return VariationOrchestrator(
        clip_generator=WaveSpeedClient(),
        narrator=GeminiNarrator(build_gemini_client(settings.GEMINI_API_KEY), tmp_dir=settings.TEMP_DIR),
        composer=MediaComposer(),
        uploader=uploader,
        progress=progress,
        tmp_dir=settings.TEMP_DIR,
    )

def build_planner() -> ScriptPlanner:
    return ScriptPlanner(build_openai_client(settings.OPENAI_API_KEY))
