from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class JobStatus(str, Enum):
    pending = "pending"
    generating = "generating"
    downloading = "downloading"
    stitching = "stitching"
    uploading = "uploading"
    completed = "completed"
    failed = "failed"


class VariationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    images: List[str] = Field(min_length=1)
    prompts: List[str]
    script: str = Field(min_length=1)
    job_id: str = Field(alias="jobId", min_length=1)


class VariationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    total_variations: int = Field(alias="totalVariations")
    variations: List[str] = Field(default_factory=list)


class MixResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    process_id: str = Field(alias="processId")
    files: List[str] = Field(default_factory=list)


class ClipTask(BaseModel):
    index: int
    image_url: str
    prompt: str
    status: str = "pending"  # pending | success | failed
    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success" and bool(self.url)


class ProgressEvent(BaseModel):
    job_id: str
    message: str
    progress: Optional[int] = None
    status: str = "running"  # running | completed | failed


class AudioFormat(BaseModel):
    num_channels: int = 1
    sample_rate: int = 24000
    bits_per_sample: int = 16


class TextRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(alias="imageUrl", min_length=1)
    prompt_count: int = Field(default=4, alias="promptCount", ge=4, le=6)
    product_name: str = Field(default="", alias="productName")


class CaptionComponents(BaseModel):
    hooks: List[str] = Field(min_length=1)
    bodies: List[str] = Field(min_length=1)
    ctas: List[str] = Field(min_length=1)
    hashtags: List[str] = Field(min_length=1)


class ScriptPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    voiceover: str
    video_prompts: List[str] = Field(alias="videoPrompts")
    captions: List[str]
    count_setting: int = Field(alias="countSetting")
    total_variations: int = Field(alias="totalVariations")


class OrchestrationState(BaseModel):
    job_id: str
    tmp_dir: str
    images: List[str]
    prompts: List[str]
    script: str
    target_variations: int
    clip_tasks: List[ClipTask] = Field(default_factory=list)
    audio_path: Optional[str] = None
    raw_clip_paths: List[str] = Field(default_factory=list)
    orders: List[List[int]] = Field(default_factory=list)
    variation_urls: List[str] = Field(default_factory=list)
