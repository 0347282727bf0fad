import json
from types import SimpleNamespace

import pytest

from video_variations.errors import ProviderError, ValidationError
from video_variations.llm import ScriptPlanner, build_prompt, mix_captions
from video_variations.models import CaptionComponents

PLAN = {
    "voiceover": "Honestly, this lamp fixed my desk.",
    "captionComponents": {
        "hooks": ["Wait for it", "You need this"],
        "bodies": ["Warm light, tiny footprint."],
        "ctas": ["Link in bio"],
        "hashtags": ["#desk #setup #lamp #cozy"],
    },
    "videoPrompts": ["close up", "slow pan", "zoom out", "orbit", "top down"],
}


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _planner(completions):
    return ScriptPlanner(SimpleNamespace(chat=SimpleNamespace(completions=completions)), model="gpt-test")


def test_plan_mixes_the_requested_number_of_captions():
    completions = FakeCompletions(json.dumps(PLAN))
    plan = _planner(completions).generate_text("https://img.test/lamp.jpg", 5, "Desk Lamp")

    assert plan.count_setting == 5
    assert plan.total_variations == 10
    assert len(plan.captions) == 10
    assert plan.video_prompts == PLAN["videoPrompts"]
    for caption in plan.captions:
        hook, body, cta, tags = caption.split("\n\n")
        assert hook in PLAN["captionComponents"]["hooks"]
        assert tags.startswith("#")

    kwargs = completions.kwargs
    assert kwargs["model"] == "gpt-test"
    assert kwargs["response_format"] == {"type": "json_object"}
    content = kwargs["messages"][0]["content"]
    assert content[1] == {"type": "image_url", "image_url": {"url": "https://img.test/lamp.jpg"}}
    assert "Desk Lamp" in content[0]["text"]
    assert "array of 5" in content[0]["text"]


def test_plan_dumps_with_camel_case_keys():
    plan = _planner(FakeCompletions(json.dumps(PLAN))).generate_text("u", 4)
    assert set(plan.model_dump(by_alias=True)) == {"voiceover", "videoPrompts", "captions", "countSetting", "totalVariations"}


@pytest.mark.parametrize("count", [3, 7])
def test_invalid_count_is_rejected_before_calling_openai(count):
    completions = FakeCompletions(json.dumps(PLAN))
    with pytest.raises(ValidationError):
        _planner(completions).generate_text("u", count)
    assert completions.kwargs is None


@pytest.mark.parametrize("content", ["not json", "", json.dumps({"voiceover": "x", "captionComponents": {"hooks": []}})])
def test_unusable_output_is_a_provider_error(content):
    with pytest.raises(ProviderError):
        _planner(FakeCompletions(content)).generate_text("u", 4)


def test_sdk_errors_are_wrapped():
    with pytest.raises(ProviderError, match="rate limited"):
        _planner(FakeCompletions(error=RuntimeError("rate limited"))).generate_text("u", 6)


def test_missing_client_fails():
    with pytest.raises(ProviderError, match="OPENAI_API_KEY"):
        ScriptPlanner(None).generate_text("u", 4)


def test_prompt_template_fills_every_placeholder():
    prompt = build_prompt(6, "Kettle")
    assert "{product_name}" not in prompt
    assert "\"Kettle\"" in prompt
    assert "15 caption variations" in prompt
    assert "about 30 seconds" in prompt


def test_mix_captions_joins_with_blank_lines():
    components = CaptionComponents(hooks=["h"], bodies=["b"], ctas=["c"], hashtags=["#t"])
    assert mix_captions(components, 2) == ["h\n\nb\n\nc\n\n#t", "h\n\nb\n\nc\n\n#t"]
