import httpx, asyncio, logging
from typing import Callable, Optional
from .errors import ProviderError, GenerationTimeoutError
from .settings import (
    WAVESPEED_API_KEY,
    WAVESPEED_BASE_URL,
    WAVESPEED_MODEL_PATH,
    WAVESPEED_POLL_INTERVAL_S,
    WAVESPEED_MAX_ATTEMPTS,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]

def _error_text(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or body)
    return str(body)

def _json_body(resp: httpx.Response) -> dict:
    try:
        body = resp.json()
    except ValueError as e:
        raise ProviderError(f"WaveSpeed returned an unreadable body: {resp.text[:200]!r}") from e
    if not isinstance(body, dict):
        raise ProviderError(f"WaveSpeed returned an unreadable body: {body!r:.200}")
    return body

class WaveSpeedClient:
    """Image-to-video generation on WaveSpeed: submit a job, then poll it to completion."""

    def __init__(
        self,
        api_key: str = WAVESPEED_API_KEY,
        base_url: str = WAVESPEED_BASE_URL,
        model_path: str = WAVESPEED_MODEL_PATH,
        poll_interval_s: float = WAVESPEED_POLL_INTERVAL_S,
        max_attempts: int = WAVESPEED_MAX_ATTEMPTS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model_path = model_path.strip("/")
        self.poll_interval_s = poll_interval_s
        self.max_attempts = max_attempts
        self._transport = transport

    def _headers(self):
        if not self.api_key:
            raise ProviderError("WAVESPEED_API_KEY is not set; please configure your .env")
        return {"Authorization": f"Bearer {self.api_key}"}

    async def generate_clip(
        self,
        prompt: str,
        image_url: str,
        index: int,
        job_id: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        def report(message: str, percent: int):
            if on_progress:
                on_progress(message, percent)

        payload = {
            "camera_fixed": False,
            "duration": 5,
            "image": image_url,
            "prompt": prompt,
            "resolution": "720p",
            "seed": -1,
        }
        report(f"[Clip {index}] Starting video generation...", 12)

        try:
            async with httpx.AsyncClient(timeout=30, transport=self._transport) as client:
                request_id = await self._submit(client, payload)
                logger.info(f"[{job_id}][Clip {index}] WaveSpeed request created with ID: {request_id}")
                report(f"[Clip {index}] ID: {request_id} | Processing...", 15)
                url = await self._poll(client, request_id, index, job_id)
        except httpx.HTTPError as e:
            logger.error(f"[{job_id}][Clip {index}] WaveSpeed transport error: {e}")
            raise ProviderError(f"WaveSpeed request failed: {e}") from e
        except (ProviderError, GenerationTimeoutError) as e:
            logger.error(f"[{job_id}][Clip {index}] WaveSpeed error: {e}")
            raise

        report(f"[Clip {index}] Done!", 18)
        return url

    async def _submit(self, client: httpx.AsyncClient, payload: dict) -> str:
        r = await client.post(
            f"{self.base_url}/{self.model_path}",
            headers={**self._headers(), "Content-Type": "application/json"},
            json=payload,
        )
        if r.status_code >= 400:
            raise ProviderError(f"WaveSpeed submit failed {r.status_code}: {_error_text(r)}")
        request_id = (_json_body(r).get("data") or {}).get("id")
        if not request_id:
            raise ProviderError("WaveSpeed submit returned no request id")
        return request_id

    async def _poll(self, client: httpx.AsyncClient, request_id: str, index: int, job_id: str) -> str:
        for attempt in range(1, self.max_attempts + 1):
            await asyncio.sleep(self.poll_interval_s)
            s = await client.get(
                f"{self.base_url}/predictions/{request_id}/result",
                headers=self._headers(),
            )
            if s.status_code >= 400:
                raise ProviderError(f"WaveSpeed status failed {s.status_code}: {_error_text(s)}")
            data = _json_body(s).get("data") or {}
            status = data.get("status")
            logger.debug(f"[{job_id}][Clip {index}] attempt {attempt}: status={status}")

            if status == "completed":
                outputs = data.get("outputs") or []
                if not outputs:
                    raise ProviderError("WaveSpeed completed but returned no output URL")
                return outputs[0]
            if status == "failed":
                raise ProviderError(data.get("error") or "Generation Failed")

        raise GenerationTimeoutError(
            f"WaveSpeed polling timeout after {self.max_attempts} attempts"
        )
