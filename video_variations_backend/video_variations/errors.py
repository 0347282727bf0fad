"""Error types raised by the variation pipeline stages.

Each stage raises its own subclass; the orchestrator collapses them into a
single JobFailedError at its boundary, keeping the original message and the
stage kind.
"""


class VariationError(RuntimeError):
    """Base class for every pipeline failure."""


class ValidationError(VariationError):
    """Bad job input (e.g. unsupported clip count). Raised before any provider call."""


class ProviderError(VariationError):
    """The video-generation provider rejected a request or reported a failed job."""


class GenerationTimeoutError(VariationError, TimeoutError):
    """Polling the provider ran out of attempts before a terminal status."""


class PartialGenerationError(VariationError):
    def __init__(self, message: str, failed_indices=None):
        super().__init__(message)
        self.failed_indices = list(failed_indices or [])


class SynthesisError(VariationError):
    """No narration audio could be produced."""


class CompositionError(VariationError):
    """ffmpeg failed while concatenating or muxing."""


class StorageError(VariationError):
    """Upload to object storage failed."""


class JobFailedError(VariationError):
    """Generic job failure surfaced to callers.

    ``kind`` is the class name of the stage error that caused it, or
    ``"InternalError"`` for anything unexpected.
    """

    def __init__(self, message: str, kind: str = "InternalError"):
        super().__init__(message)
        self.kind = kind
