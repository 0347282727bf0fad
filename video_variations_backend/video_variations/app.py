import re, json, time, random, logging
from contextlib import asynccontextmanager
from typing import List, Optional
from fastapi import FastAPI, HTTPException, UploadFile, File, Form
from fastapi.responses import JSONResponse, StreamingResponse
from fastapi.middleware.cors import CORSMiddleware

# Ensure .env is loaded before importing modules that initialize API clients
from .settings import has_all_keys, ALLOWED_ORIGINS, TEMP_DIR, CROP_UPLOADS
from .errors import JobFailedError, ProviderError, StorageError, ValidationError
from .media import crop_to_vertical
from .mixer import VideoMixer, parse_variations
from .models import TextRequest, VariationRequest
from .permutations import VARIATION_TARGETS
from .progress import ProgressChannel, Subscription, TERMINAL_STATUSES
from .workspace import clean_temp_dir

logger = logging.getLogger(__name__)

MAX_UPLOAD_FILES = 6
IMAGE_TYPE_RE = re.compile(r"/(jpg|jpeg|png|webp)$")

async def _sse_events(sub: Subscription):
    try:
        async for event in sub:
            payload = {"message": event.message, "progress": event.progress}
            yield f"data: {json.dumps(payload)}\n\n"
            if event.status in TERMINAL_STATUSES:
                break
    finally:
        sub.close()

def create_app(orchestrator=None, planner=None, uploader=None, progress: ProgressChannel = None, mixer=None) -> FastAPI:
    if orchestrator is None or planner is None or uploader is None:
        from .clients import build_orchestrator, build_planner, build_uploader
        progress = progress or ProgressChannel()
        uploader = uploader or build_uploader()
        orchestrator = orchestrator or build_orchestrator(progress, uploader)
        planner = planner or build_planner()
    progress = progress or orchestrator.progress
    mixer = mixer or VideoMixer(orchestrator.composer, uploader, orchestrator.tmp_dir)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        clean_temp_dir(TEMP_DIR)
        yield

    app = FastAPI(title="Video Variations Backend", lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.state.planner = planner
    app.state.uploader = uploader
    app.state.progress = progress
    app.state.mixer = mixer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS or ["*"],
        allow_credentials=True,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        keys_ok = has_all_keys()
        logger.info(f"Health check: API keys present = {keys_ok}")
        return {"ok": True, "has_keys": keys_ok}

    @app.get("/generate/progress/{job_id}")
    async def job_progress(job_id: str):
        sub = progress.subscribe(job_id)
        return StreamingResponse(_sse_events(sub), media_type="text/event-stream")

    @app.get("/generate/jobs/{job_id}")
    def job_status(job_id: str):
        job = orchestrator.get_job(job_id)
        if not job:
            raise HTTPException(404, "job not found")
        return job.snapshot()

    @app.post("/generate/text")
    def generate_text(req: TextRequest):
        try:
            plan = planner.generate_text(req.image_url, req.prompt_count, req.product_name)
        except ValidationError as e:
            raise HTTPException(400, str(e))
        except ProviderError as e:
            logger.error(f"Script planning failed: {e}")
            raise HTTPException(500, "OpenAI Error")
        return plan.model_dump(by_alias=True)

    @app.post("/generate/video")
    async def generate_video(req: VariationRequest):
        count = len(req.prompts)
        if count not in VARIATION_TARGETS:
            return JSONResponse(
                status_code=400,
                content={"statusCode": 400, "message": f"Prompt count must be 4, 5, or 6. Got {count}."},
            )
        try:
            result = await orchestrator.run(req.images, req.prompts, req.script, req.job_id)
        except ValidationError as e:
            return JSONResponse(status_code=400, content={"statusCode": 400, "message": str(e)})
        except JobFailedError as e:
            return JSONResponse(status_code=500, content={"statusCode": 500, "message": str(e)})
        return {"statusCode": 200, "message": "Success", "data": result.model_dump(by_alias=True)}

    @app.post("/generate/upload")
    async def upload_files(files: List[UploadFile] = File(...)):
        if not files:
            raise HTTPException(400, "No files provided")
        if len(files) > MAX_UPLOAD_FILES:
            raise HTTPException(400, f"At most {MAX_UPLOAD_FILES} images per upload")
        for f in files:
            if not IMAGE_TYPE_RE.search(f.content_type or ""):
                raise HTTPException(400, "Only image files are allowed (jpg, png, webp)")

        urls = []
        try:
            for f in files:
                data = await f.read()
                if CROP_UPLOADS:
                    try:
                        data = crop_to_vertical(data)
                    except (OSError, ValueError) as e:
                        raise HTTPException(400, f"Invalid image {f.filename}: {e}")
                key = f"input_{int(time.time() * 1000)}_{random.randint(0, 1000)}_{f.filename}"
                logger.info(f"Uploading image: {key}")
                urls.append(await uploader.upload(data, key, f.content_type))
        except StorageError as e:
            raise HTTPException(500, f"Upload Failed: {e}")
        return {"message": f"{len(files)} images uploaded successfully", "imageUrls": urls}

    @app.post("/video-mixer")
    async def video_mixer(
        clips: Optional[List[UploadFile]] = File(None),
        audio: Optional[UploadFile] = File(None),
        variations: Optional[str] = Form(None),
    ):
        clip_files = [(c.filename, await c.read()) for c in (clips or [])]
        audio_file = (audio.filename, await audio.read()) if audio else None
        try:
            result = await mixer.mix(clip_files, audio_file, parse_variations(variations))
        except ValidationError as e:
            raise HTTPException(400, str(e))
        except JobFailedError as e:
            raise HTTPException(500, f"Video mixing failed: {e}")
        return result.model_dump(by_alias=True)

    return app

app = create_app()
