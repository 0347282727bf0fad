import asyncio, logging
from functools import partial
from typing import Dict, List, Optional
from langchain_core.runnables import RunnableConfig
from langgraph.graph import StateGraph, END
from .errors import VariationError, ValidationError, PartialGenerationError, SynthesisError, JobFailedError
from .media import download_file
from .models import ClipTask, JobStatus, OrchestrationState, VariationResult
from .permutations import generate_unique_shuffles, variation_target
from .progress import ProgressChannel
from .settings import TEMP_DIR
from .workspace import TempWorkspace

logger = logging.getLogger(__name__)

class JobRecord:
    def __init__(self, job_id: str, total_clips: int, target_variations: int, workspace: TempWorkspace):
        self.job_id = job_id
        self.total_clips = total_clips
        self.target_variations = target_variations
        self.workspace = workspace
        self.status = JobStatus.pending
        self.progress = 0
        self.error: Optional[str] = None
        self.variations: List[str] = []

    def snapshot(self) -> dict:
        return {
            "job_id": self.job_id,
            "status": self.status.value,
            "progress": self.progress,
            "error": self.error,
            "total_clips": self.total_clips,
            "target_variations": self.target_variations,
            "variations_uploaded": len(self.variations),
        }

class VariationOrchestrator:
    """Runs one variation job end to end.

    Clip generation and narration run concurrently and are joined all-settle,
    so every clip's outcome is known before the job decides to abort. The
    stitch/upload loop is sequential to keep ffmpeg load bounded.
    """

    def __init__(self, clip_generator, narrator, composer, uploader, progress: Optional[ProgressChannel] = None,
                 download=download_file, tmp_dir: str = TEMP_DIR):
        self.clip_generator = clip_generator
        self.narrator = narrator
        self.composer = composer
        self.uploader = uploader
        self.progress = progress or ProgressChannel()
        self.download = download
        self.tmp_dir = tmp_dir
        self._jobs: Dict[str, JobRecord] = {}
        self._graph = self._build_graph()

    def get_job(self, job_id: str) -> Optional[JobRecord]:
        return self._jobs.get(job_id)

    def _log_progress(self, job: JobRecord, message: str, percent: int):
        # concurrent clip workers report out of order; never move backwards
        job.progress = max(job.progress, percent)
        logger.info(f"[{job.job_id}] {message}")
        self.progress.publish(job.job_id, message, job.progress)

    @staticmethod
    def _job(config: RunnableConfig) -> JobRecord:
        return config["configurable"]["job"]

    async def _run_clip(self, job: JobRecord, task: ClipTask) -> ClipTask:
        try:
            url = await self.clip_generator.generate_clip(
                task.prompt, task.image_url, task.index, job.job_id,
                on_progress=partial(self._log_progress, job),
            )
            return task.model_copy(update={"status": "success", "url": url})
        except Exception as e:
            logger.error(f"[{job.job_id}] Clip {task.index} failed: {e}")
            return task.model_copy(update={"status": "failed", "error": str(e)})

    async def node_generate(self, state: OrchestrationState, config: RunnableConfig) -> dict:
        job = self._job(config)
        job.status = JobStatus.generating
        tasks = [
            ClipTask(index=i, image_url=state.images[i] if i < len(state.images) and state.images[i] else state.images[0], prompt=p)
            for i, p in enumerate(state.prompts)
        ]
        self._log_progress(job, "Generating video & audio...", 10)

        results = await asyncio.gather(
            *(self._run_clip(job, t) for t in tasks),
            self.narrator.synthesize(state.script, state.job_id),
            return_exceptions=True,
        )
        clip_results, audio_result = results[:-1], results[-1]

        if isinstance(audio_result, BaseException):
            if isinstance(audio_result, SynthesisError):
                raise audio_result
            raise SynthesisError(f"Narration failed: {audio_result}") from audio_result
        job.workspace.register(audio_result)

        finished: List[ClipTask] = []
        for task, result in zip(tasks, clip_results):
            if isinstance(result, BaseException):
                result = task.model_copy(update={"status": "failed", "error": str(result)})
            finished.append(result)

        failed = [t for t in finished if not t.succeeded]
        if failed:
            details = "; ".join(f"clip {t.index}: {t.error}" for t in failed)
            raise PartialGenerationError(
                f"Failed to generate all clips ({len(finished) - len(failed)}/{len(finished)} succeeded). {details}",
                failed_indices=[t.index for t in failed],
            )
        return {"clip_tasks": finished, "audio_path": audio_result}

    async def node_download(self, state: OrchestrationState, config: RunnableConfig) -> dict:
        job = self._job(config)
        job.status = JobStatus.downloading
        ordered = sorted(state.clip_tasks, key=lambda t: t.index)
        paths = []
        for n, task in enumerate(ordered, start=1):
            raw_path = job.workspace.path("raw", task.index)
            percent = 20 + round(n / len(ordered) * 20)
            self._log_progress(job, f"Downloading clip #{task.index + 1}/{len(ordered)}...", percent)
            await self.download(task.url, raw_path)
            paths.append(raw_path)
        return {"raw_clip_paths": paths}

    async def node_stitch(self, state: OrchestrationState, config: RunnableConfig) -> dict:
        job = self._job(config)
        ws = job.workspace
        orders = generate_unique_shuffles(len(state.raw_clip_paths), state.target_variations)
        job.status = JobStatus.stitching
        self._log_progress(job, f"Stitching {len(orders)} variations...", 40)

        urls = []
        for i, order in enumerate(orders):
            ordered_paths = [state.raw_clip_paths[k] for k in order]
            visual_path = ws.path("vis", i)
            await self.composer.concat_visual(ordered_paths, visual_path)

            variation_path = ws.path("var", i)
            await self.composer.mux_audio(visual_path, state.audio_path, variation_path)

            job.status = JobStatus.uploading
            percent = 40 + round((i + 1) / len(orders) * 55)
            self._log_progress(job, f"Uploading variation {i + 1}/{len(orders)}...", percent)
            key = f"results/{state.job_id}/VARIATION_{state.job_id}_{i + 1}.mp4"
            url = await self.uploader.upload(variation_path, key, "video/mp4")
            urls.append(url)
            job.variations.append(url)

            ws.discard(visual_path)
            ws.discard(variation_path)
            job.status = JobStatus.stitching
        return {"orders": orders, "variation_urls": urls}

    def _build_graph(self):
        g = StateGraph(OrchestrationState)
        g.add_node("generate", self.node_generate)
        g.add_node("download", self.node_download)
        g.add_node("stitch", self.node_stitch)
        g.set_entry_point("generate")
        g.add_edge("generate", "download")
        g.add_edge("download", "stitch")
        g.add_edge("stitch", END)
        return g.compile()

    async def run(self, images: List[str], prompts: List[str], script: str, job_id: str) -> VariationResult:
        total_clips = len(prompts)
        target = variation_target(total_clips)
        if not images:
            raise ValidationError("At least one image is required.")
        if job_id in self._jobs:
            raise ValidationError(f"Job {job_id} is already running.")

        workspace = TempWorkspace(job_id, self.tmp_dir)
        job = JobRecord(job_id, total_clips, target, workspace)
        self._jobs[job_id] = job
        state = OrchestrationState(
            job_id=job_id,
            tmp_dir=self.tmp_dir,
            images=images,
            prompts=prompts,
            script=script,
            target_variations=target,
        )

        try:
            logger.info(f"[{job_id}] === Starting variation engine: {total_clips} clips -> {target} variations ===")
            final_state = await self._graph.ainvoke(state, config={"configurable": {"job": job}})
            if hasattr(final_state, "get"):
                urls = final_state.get("variation_urls", [])
            else:
                urls = final_state.variation_urls

            job.status = JobStatus.completed
            job.progress = 100
            logger.info(f"[{job_id}] Done! {len(urls)} variation(s) uploaded")
            self.progress.publish(job_id, "Done! Files uploaded successfully.", 100, status="completed")
            return VariationResult(job_id=job_id, total_variations=len(urls), variations=urls)
        except Exception as e:
            job.status = JobStatus.failed
            job.error = str(e)
            kind = type(e).__name__ if isinstance(e, VariationError) else "InternalError"
            logger.error(f"[{job_id}] ERROR ({kind}): {e}")
            self.progress.publish(job_id, f"Failed: {e}", job.progress, status="failed")
            raise JobFailedError(str(e), kind=kind) from e
        finally:
            workspace.purge()
            self._jobs.pop(job_id, None)
