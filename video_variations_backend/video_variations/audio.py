"""WAV container helpers for raw PCM narration returned by the TTS stream."""
import base64, struct
from typing import Union
from .models import AudioFormat

WAV_HEADER_SIZE = 44

def parse_mime_type(mime_type: str) -> AudioFormat:
    """Read channels / rate / bit depth from a descriptor like ``audio/L16;codec=pcm;rate=24000``."""
    fmt = AudioFormat()
    file_type, *params = [s.strip() for s in (mime_type or "").split(";")]
    _, _, subtype = file_type.partition("/")
    if subtype.upper().startswith("L"):
        digits = subtype[1:]
        if digits.isdigit():
            fmt.bits_per_sample = int(digits)
    for param in params:
        key, _, value = param.partition("=")
        key, value = key.strip().lower(), value.strip()
        if key == "rate" and value.isdigit():
            fmt.sample_rate = int(value)
        elif key == "channels" and value.isdigit():
            fmt.num_channels = int(value)
    return fmt

def make_mime_type(fmt: AudioFormat) -> str:
    return f"audio/L{fmt.bits_per_sample};codec=pcm;rate={fmt.sample_rate};channels={fmt.num_channels}"

def create_wav_header(data_length: int, fmt: AudioFormat) -> bytes:
    byte_rate = fmt.sample_rate * fmt.num_channels * fmt.bits_per_sample // 8
    block_align = fmt.num_channels * fmt.bits_per_sample // 8
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_length,
        b"WAVE",
        b"fmt ",
        16,  # fmt chunk size
        1,   # PCM
        fmt.num_channels,
        fmt.sample_rate,
        byte_rate,
        block_align,
        fmt.bits_per_sample,
        b"data",
        data_length,
    )

def pcm_to_wav(pcm: bytes, mime_type: str) -> bytes:
    fmt = parse_mime_type(mime_type)
    return create_wav_header(len(pcm), fmt) + pcm

def convert_to_wav(data: Union[str, bytes], mime_type: str) -> bytes:
    # the REST API hands back base64 text, the SDK already decoded bytes
    if isinstance(data, str):
        data = base64.b64decode(data)
    return pcm_to_wav(data or b"", mime_type)
