import os, sys, asyncio, tempfile

# Add the backend to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "video_variations_backend"))
os.environ.setdefault("TEMP_DIR", os.path.join(tempfile.gettempdir(), "video-variations-tests"))

import pytest

from video_variations.progress import ProgressChannel


class FakeClipGenerator:
    def __init__(self, fail=None, delay=0.0):
        self.fail = fail or {}
        self.delay = delay
        self.calls = []
        self.finished = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate_clip(self, prompt, image_url, index, job_id, on_progress=None):
        self.calls.append({"prompt": prompt, "image_url": image_url, "index": index, "job_id": job_id})
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if on_progress:
                on_progress(f"[Clip {index}] Starting video generation...", 12)
            await asyncio.sleep(self.delay)
            if on_progress:
                on_progress(f"[Clip {index}] ID: req-{index} | Processing...", 15)
            await asyncio.sleep(self.delay)
            if index in self.fail:
                raise RuntimeError(self.fail[index])
            if on_progress:
                on_progress(f"[Clip {index}] Done!", 18)
            return f"https://cdn.example.com/{job_id}/clip_{index}.mp4"
        finally:
            self.in_flight -= 1
            self.finished += 1


class FakeNarrator:
    def __init__(self, tmp_dir, error=None):
        self.tmp_dir = tmp_dir
        self.error = error
        self.calls = []

    async def synthesize(self, script, job_id):
        self.calls.append(script)
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        path = os.path.join(self.tmp_dir, f"audio_{job_id}_0.wav")
        with open(path, "wb") as f:
            f.write(b"RIFF-fake-narration")
        return path


class FakeComposer:
    def __init__(self, fail_on_mux=False):
        self.fail_on_mux = fail_on_mux
        self.concat_calls = []
        self.mux_calls = []

    async def concat_visual(self, inputs, out_path):
        self.concat_calls.append((list(inputs), out_path))
        with open(out_path, "wb") as f:
            f.write(b"visual:" + ",".join(os.path.basename(p) for p in inputs).encode())

    async def mux_audio(self, visual_path, audio_path, out_path):
        self.mux_calls.append((visual_path, audio_path, out_path))
        if self.fail_on_mux:
            from video_variations.errors import CompositionError
            raise CompositionError("FFmpeg failed: mux exploded")
        with open(out_path, "wb") as f:
            f.write(b"variation")


class FakeUploader:
    def __init__(self, fail_on=None):
        # 1-based upload number that raises StorageError
        self.fail_on = fail_on
        self.calls = []

    async def upload(self, file_input, key, content_type):
        if self.fail_on and len(self.calls) + 1 == self.fail_on:
            from video_variations.errors import StorageError
            raise StorageError("S3 Upload Failed: SlowDown")
        if isinstance(file_input, str):
            assert os.path.exists(file_input), f"upload of missing file {file_input}"
        self.calls.append({"key": key, "content_type": content_type})
        return f"https://bucket.s3.test-region.amazonaws.com/{key}"


async def fake_download(url, out_path):
    with open(out_path, "wb") as f:
        f.write(url.encode())


@pytest.fixture
def tmp_dir(tmp_path):
    d = tmp_path / "work"
    d.mkdir()
    return str(d)


@pytest.fixture
def progress():
    return ProgressChannel()
