import json, random, logging
from typing import List
from pydantic import ValidationError as SchemaError
from .errors import ProviderError, ValidationError
from .models import CaptionComponents, ScriptPlan
from .prompts import SCRIPT_PROMPT_TEMPLATE, PLAN_TARGETS
from .settings import OPENAI_MODEL

logger = logging.getLogger(__name__)

def build_prompt(count: int, product_name: str) -> str:
    if count not in PLAN_TARGETS:
        raise ValidationError("Count must be 4, 5, or 6")
    caption_count, duration_hint = PLAN_TARGETS[count]
    return SCRIPT_PROMPT_TEMPLATE.format(
        product_name=product_name,
        caption_count=caption_count,
        duration_hint=duration_hint,
        prompt_count=count,
    )

def mix_captions(components: CaptionComponents, total: int) -> List[str]:
    """Assemble ``total`` captions from one random hook/body/cta/hashtag set each."""
    captions = []
    for _ in range(total):
        parts = [
            random.choice(components.hooks),
            random.choice(components.bodies),
            random.choice(components.ctas),
            random.choice(components.hashtags),
        ]
        captions.append("\n\n".join(parts))
    return captions

class ScriptPlanner:
    def __init__(self, client=None, model: str = OPENAI_MODEL):
        self.client = client
        self.model = model

    def generate_text(self, image_url: str, count: int = 4, product_name: str = "") -> ScriptPlan:
        prompt = build_prompt(count, product_name)
        caption_count, _ = PLAN_TARGETS[count]
        if self.client is None:
            raise ProviderError("OPENAI_API_KEY is not set; please configure your .env")

        logger.info(f"OpenAI: analyzing image for {count} prompts, {caption_count} caption variations")
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=[{
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                }],
                response_format={"type": "json_object"},
            )
            content = resp.choices[0].message.content
        except Exception as e:
            logger.error(f"OpenAI API call failed: {e}")
            raise ProviderError(f"OpenAI error: {e}") from e

        if not content:
            raise ProviderError("OpenAI error: empty content")
        try:
            data = json.loads(content)
            components = CaptionComponents.model_validate(data.get("captionComponents") or {})
        except (json.JSONDecodeError, SchemaError, AttributeError) as e:
            logger.error(f"OpenAI returned an unusable plan: {e}")
            raise ProviderError(f"OpenAI error: invalid plan ({e})") from e

        return ScriptPlan(
            voiceover=data.get("voiceover", ""),
            video_prompts=list(data.get("videoPrompts") or []),
            captions=mix_captions(components, caption_count),
            count_setting=count,
            total_variations=caption_count,
        )

def build_openai_client(api_key: str):
    if not api_key:
        logger.warning("OPENAI_API_KEY is not set; script planning is disabled")
        return None
    from openai import OpenAI
    return OpenAI(api_key=api_key)
