import random, logging
from typing import List
from .errors import ValidationError

logger = logging.getLogger(__name__)

# clip count -> number of variations rendered per job
VARIATION_TARGETS = {4: 20, 5: 50, 6: 100}

# attempts allowed per requested ordering before giving up on the target
ATTEMPT_MULTIPLIER = 50

def variation_target(clip_count: int) -> int:
    target = VARIATION_TARGETS.get(clip_count)
    if target is None:
        raise ValidationError(f"Prompts must be 4, 5, or 6 (got {clip_count}).")
    return target

def generate_unique_shuffles(length: int, limit: int) -> List[List[int]]:
    """Return up to ``limit`` distinct random orderings of ``range(length)``.

    Orderings come from repeated uniform shuffles with duplicates rejected.
    The search stops after ``ATTEMPT_MULTIPLIER * limit`` shuffles, so the
    result can be shorter than ``limit`` (e.g. 4 clips only have 24 orderings).
    """
    seen = set()
    output: List[List[int]] = []
    base = list(range(length))
    attempts = 0

    while len(output) < limit and attempts < limit * ATTEMPT_MULTIPLIER:
        attempts += 1
        shuffled = base[:]
        random.shuffle(shuffled)
        key = ",".join(str(i) for i in shuffled)
        if key not in seen:
            seen.add(key)
            output.append(shuffled)

    if len(output) < limit:
        logger.warning(f"Only generated {len(output)} unique orderings out of target {limit}")
    return output
