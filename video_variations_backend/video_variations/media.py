import io, os, asyncio, logging, subprocess, shlex
import httpx
from typing import List, Optional
from .errors import CompositionError, ProviderError
from .settings import FFMPEG_BIN

logger = logging.getLogger(__name__)

async def download_file(url: str, out_path: str, transport: Optional[httpx.AsyncBaseTransport] = None):
    """Stream a remote file to ``out_path``."""
    os.makedirs(os.path.dirname(out_path), exist_ok=True)
    try:
        async with httpx.AsyncClient(timeout=120, transport=transport, follow_redirects=True) as client:
            async with client.stream("GET", url) as resp:
                if resp.status_code >= 400:
                    raise ProviderError(f"Download failed {resp.status_code} for {url}")
                with open(out_path, "wb") as f:
                    async for chunk in resp.aiter_bytes():
                        if chunk:
                            f.write(chunk)
    except httpx.HTTPError as e:
        logger.error(f"Download error for {url}: {e}")
        raise ProviderError(f"Download failed for {url}: {e}") from e

def crop_to_vertical(data: bytes) -> bytes:
    """Crop an image to the largest centred 9:16 box. Output keeps the source format."""
    from PIL import Image

    with Image.open(io.BytesIO(data)) as img:
        fmt = img.format or "PNG"
        width, height = img.size
        if not width or not height:
            raise ValueError("Could not read image dimensions")
        target_ratio = 9 / 16
        if width / height > target_ratio:
            # too wide: keep full height
            crop_w, crop_h = round(height * target_ratio), height
        else:
            crop_w, crop_h = width, round(width * 16 / 9)
        left = (width - crop_w) // 2
        top = (height - crop_h) // 2
        logger.info(f"Cropping image {width}x{height} -> {crop_w}x{crop_h}")
        cropped = img.crop((left, top, left + crop_w, top + crop_h))
        if fmt == "JPEG" and cropped.mode not in ("RGB", "L"):
            cropped = cropped.convert("RGB")
        buf = io.BytesIO()
        cropped.save(buf, format=fmt)
        return buf.getvalue()

def concat_command(inputs: List[str], out_path: str, ffmpeg_bin: str = FFMPEG_BIN) -> str:
    # video-only concat filter; provider clips may not carry audio
    input_args = " ".join(f"-i {shlex.quote(p)}" for p in inputs)
    filter_inputs = "".join(f"[{i}:v]" for i in range(len(inputs)))
    filter_complex = f"{filter_inputs}concat=n={len(inputs)}:v=1:a=0[v]"
    return (
        f'{ffmpeg_bin} -y {input_args} -filter_complex "{filter_complex}" '
        f'-map "[v]" {shlex.quote(out_path)}'
    )

def mux_command(visual_path: str, audio_path: str, out_path: str, ffmpeg_bin: str = FFMPEG_BIN) -> str:
    return (
        f"{ffmpeg_bin} -y -i {shlex.quote(visual_path)} -i {shlex.quote(audio_path)} "
        f"-c:v copy -c:a aac -map 0:v:0 -map 1:a:0 {shlex.quote(out_path)}"
    )

def _run(cmd: str):
    logger.info(f"Running FFmpeg command: {cmd}")
    proc = subprocess.run(cmd, shell=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    if proc.returncode != 0:
        error_msg = proc.stderr.decode("utf-8", errors="ignore")
        logger.error(f"FFmpeg command failed with return code {proc.returncode}: {error_msg}")
        raise CompositionError(f"FFmpeg failed: {error_msg}")

class MediaComposer:
    """Two-stage ffmpeg composition: silent visual concat, then narration mux."""

    def __init__(self, ffmpeg_bin: str = FFMPEG_BIN):
        self.ffmpeg_bin = ffmpeg_bin

    async def concat_visual(self, inputs: List[str], out_path: str):
        if not inputs:
            raise CompositionError("No clips to concatenate")
        await asyncio.to_thread(_run, concat_command(inputs, out_path, self.ffmpeg_bin))

    async def mux_audio(self, visual_path: str, audio_path: str, out_path: str):
        await asyncio.to_thread(_run, mux_command(visual_path, audio_path, out_path, self.ffmpeg_bin))
