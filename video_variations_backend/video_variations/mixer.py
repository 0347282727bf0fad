import os, uuid, logging
from typing import List, Optional, Tuple
from .errors import JobFailedError, ValidationError, VariationError
from .models import MixResult
from .permutations import generate_unique_shuffles
from .settings import TEMP_DIR
from .workspace import TempWorkspace

logger = logging.getLogger(__name__)

MIN_CLIPS = 2
MAX_CLIPS = 6
# same ceiling as the largest generated job
MAX_VARIATIONS = 100

# (filename, content)
UploadedFile = Tuple[str, bytes]

def parse_variations(raw: Optional[str]) -> int:
    try:
        n = int(str(raw).strip())
    except (TypeError, ValueError):
        return 1
    return min(n, MAX_VARIATIONS) if n > 0 else 1

def _ext(filename: str, default: str) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    return ext if ext else default

class VideoMixer:
    """Reorders caller-supplied clips into unique variations over one audio track.

    Same stitch, mux and upload loop as the generated pipeline, minus the
    providers: the clips and the audio come straight from the request.
    """

    def __init__(self, composer, uploader, tmp_dir: str = TEMP_DIR):
        self.composer = composer
        self.uploader = uploader
        self.tmp_dir = tmp_dir

    async def mix(self, clips: List[UploadedFile], audio: Optional[UploadedFile], variations: int = 1) -> MixResult:
        if len(clips) < MIN_CLIPS:
            raise ValidationError(f"At least {MIN_CLIPS} video clips are required.")
        if len(clips) > MAX_CLIPS:
            raise ValidationError(f"At most {MAX_CLIPS} video clips are allowed.")
        if not audio or not audio[1]:
            raise ValidationError("An audio file is required.")

        process_id = uuid.uuid4().hex[:8]
        ws = TempWorkspace(process_id, self.tmp_dir)
        try:
            clip_paths = []
            for i, (name, data) in enumerate(clips):
                p = ws.path("clip", i, _ext(name, ".mp4"))
                with open(p, "wb") as f:
                    f.write(data)
                clip_paths.append(p)
            audio_path = ws.path("audio", 0, _ext(audio[0], ".wav"))
            with open(audio_path, "wb") as f:
                f.write(audio[1])

            orders = generate_unique_shuffles(len(clip_paths), variations)
            logger.info(f"[{process_id}] Mixing {len(orders)} variation(s) from {len(clip_paths)} clips")

            urls = []
            for i, order in enumerate(orders):
                visual_path = ws.path("vis", i)
                await self.composer.concat_visual([clip_paths[k] for k in order], visual_path)
                variation_path = ws.path("var", i)
                await self.composer.mux_audio(visual_path, audio_path, variation_path)

                key = f"results/mixer/{process_id}/VARIATION_{process_id}_{i + 1}.mp4"
                urls.append(await self.uploader.upload(variation_path, key, "video/mp4"))
                logger.info(f"[{process_id}] Variation {i + 1}/{len(orders)} done")

                ws.discard(visual_path)
                ws.discard(variation_path)
            return MixResult(process_id=process_id, files=urls)
        except Exception as e:
            kind = type(e).__name__ if isinstance(e, VariationError) else "InternalError"
            logger.error(f"[{process_id}] Mixing failed ({kind}): {e}")
            raise JobFailedError(str(e), kind=kind) from e
        finally:
            ws.purge()
