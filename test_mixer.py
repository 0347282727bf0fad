import os, asyncio

import pytest

from conftest import FakeComposer, FakeUploader
from video_variations.errors import JobFailedError, ValidationError
from video_variations.mixer import VideoMixer, parse_variations

CLIPS = [(f"clip{i}.mp4", f"clip-{i}".encode()) for i in range(3)]
AUDIO = ("voice.mp3", b"ID3-audio")


def test_mixes_requested_variations(tmp_dir):
    composer, uploader = FakeComposer(), FakeUploader()
    result = asyncio.run(VideoMixer(composer, uploader, tmp_dir).mix(CLIPS, AUDIO, 5))

    assert result.success is True
    assert len(result.files) == 5
    assert len({tuple(inputs) for inputs, _ in composer.concat_calls}) == 5
    audio_inputs = {audio for _, audio, _ in composer.mux_calls}
    assert len(audio_inputs) == 1 and audio_inputs.pop().endswith(".mp3")
    assert uploader.calls[0]["key"] == f"results/mixer/{result.process_id}/VARIATION_{result.process_id}_1.mp4"
    assert os.listdir(tmp_dir) == []
    assert set(result.model_dump(by_alias=True)) == {"success", "processId", "files"}


def test_variations_are_capped_by_possible_orderings(tmp_dir):
    result = asyncio.run(VideoMixer(FakeComposer(), FakeUploader(), tmp_dir).mix(CLIPS[:2], AUDIO, 10))
    assert len(result.files) == 2


@pytest.mark.parametrize("clips,audio", [(CLIPS[:1], AUDIO), (CLIPS * 3, AUDIO), (CLIPS, None)])
def test_bad_input_is_rejected_before_any_work(tmp_dir, clips, audio):
    composer = FakeComposer()
    with pytest.raises(ValidationError):
        asyncio.run(VideoMixer(composer, FakeUploader(), tmp_dir).mix(clips, audio, 2))
    assert composer.concat_calls == []
    assert os.listdir(tmp_dir) == []


def test_mux_failure_is_collapsed_and_cleaned_up(tmp_dir):
    with pytest.raises(JobFailedError) as exc:
        asyncio.run(VideoMixer(FakeComposer(fail_on_mux=True), FakeUploader(), tmp_dir).mix(CLIPS, AUDIO, 2))
    assert exc.value.kind == "CompositionError"
    assert os.listdir(tmp_dir) == []


@pytest.mark.parametrize("raw,expected", [("3", 3), (" 7 ", 7), ("", 1), (None, 1), ("abc", 1), ("0", 1), ("-2", 1), ("500", 100)])
def test_parse_variations(raw, expected):
    assert parse_variations(raw) == expected
