import os, logging
from typing import List

logger = logging.getLogger(__name__)

# extensions left behind by interrupted jobs
STALE_EXTENSIONS = (".mp4", ".wav", ".zip")

class TempWorkspace:
    """Tracks the intermediate files of one job and deletes them once.

    File names embed the job id, a stage tag and an index, so several jobs
    can share the same temp directory without colliding.
    """

    def __init__(self, job_id: str, tmp_dir: str):
        self.job_id = job_id
        self.tmp_dir = tmp_dir
        self.paths: List[str] = []
        self.purged = False
        os.makedirs(tmp_dir, exist_ok=True)

    def path(self, stage: str, index: int, ext: str = ".mp4") -> str:
        p = os.path.join(self.tmp_dir, f"{stage}_{self.job_id}_{index}{ext}")
        return self.register(p)

    def register(self, path: str) -> str:
        if path not in self.paths:
            self.paths.append(path)
        return path

    def discard(self, path: str):
        """Delete a registered file early; purge() will skip it later."""
        if os.path.exists(path):
            os.remove(path)

    def purge(self) -> int:
        if self.purged:
            logger.warning(f"[{self.job_id}] Workspace already purged, skipping")
            return 0
        self.purged = True
        removed = 0
        for p in self.paths:
            try:
                os.remove(p)
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error(f"[{self.job_id}] Failed to delete temp file {p}: {e}")
        logger.info(f"[{self.job_id}] Purged {removed} temp file(s)")
        return removed

def clean_temp_dir(tmp_dir: str) -> int:
    """Remove leftovers of earlier runs. Meant for service start-up only."""
    if not os.path.isdir(tmp_dir):
        return 0
    stale = [f for f in os.listdir(tmp_dir) if f.endswith(STALE_EXTENSIONS)]
    if stale:
        logger.warning(f"Cleaning {len(stale)} temp files...")
    for name in stale:
        try:
            os.remove(os.path.join(tmp_dir, name))
        except OSError as e:
            logger.error(f"Failed to clean temp file {name}: {e}")
    return len(stale)
