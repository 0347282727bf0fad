import os, logging
from .audio import convert_to_wav
from .errors import SynthesisError
from .settings import GEMINI_TTS_MODEL, GEMINI_TTS_VOICE, TEMP_DIR

logger = logging.getLogger(__name__)

def _inline_audio(chunk):
    """Return the inline audio blob of a streamed chunk, or None."""
    candidates = getattr(chunk, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return None
    inline = getattr(parts[0], "inline_data", None)
    if inline is None or not getattr(inline, "data", None):
        return None
    return inline

class GeminiNarrator:
    """Narration through Gemini's streamed TTS, written out as a WAV file.

    Only the first audio-bearing chunk is used; the rest of the stream is
    abandoned once it has been written.
    """

    def __init__(self, client=None, model: str = GEMINI_TTS_MODEL, voice_name: str = GEMINI_TTS_VOICE, tmp_dir: str = TEMP_DIR):
        self.client = client
        self.model = model
        self.voice_name = voice_name
        self.tmp_dir = tmp_dir

    def _config(self):
        from google.genai import types
        return types.GenerateContentConfig(
            response_modalities=["audio"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=self.voice_name)
                )
            ),
        )

    def output_path(self, job_id: str) -> str:
        return os.path.join(self.tmp_dir, f"audio_{job_id}_0.wav")

    async def synthesize(self, script: str, job_id: str) -> str:
        if self.client is None:
            raise SynthesisError("GEMINI_API_KEY missing; narration client is not configured")
        logger.info(f"[{job_id}] Generating narration audio ({len(script)} chars)")

        out_path = self.output_path(job_id)
        try:
            stream = await self.client.aio.models.generate_content_stream(
                model=self.model,
                contents=[{"role": "user", "parts": [{"text": script}]}],
                config=self._config(),
            )
            async for chunk in stream:
                inline = _inline_audio(chunk)
                if inline is None:
                    continue
                wav = convert_to_wav(inline.data, getattr(inline, "mime_type", "") or "")
                os.makedirs(os.path.dirname(out_path), exist_ok=True)
                with open(out_path, "wb") as f:
                    f.write(wav)
                logger.info(f"[{job_id}] Narration saved to {out_path} ({len(wav)} bytes)")
                return out_path
        except SynthesisError:
            raise
        except Exception as e:
            logger.error(f"[{job_id}] Gemini TTS failed: {e}")
            # a half-written file is never registered with the job workspace
            if os.path.exists(out_path):
                os.remove(out_path)
            raise SynthesisError(f"Gemini TTS failed: {e}") from e

        raise SynthesisError("Gemini stream finished without audio data.")
