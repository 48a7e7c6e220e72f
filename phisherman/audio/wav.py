"""
WAV container encoding for speech-model audio.

The Gemini speech model returns raw little-endian 16-bit PCM, mono, at 24 kHz.
Browsers cannot play that directly, so it is prefixed with the canonical
44-byte RIFF/WAVE header before being handed to an audio element.
"""

import base64
import binascii
import logging
import struct

from ..exceptions import AudioFormatError

logger = logging.getLogger(__name__)

SAMPLE_RATE = 24000
NUM_CHANNELS = 1
BITS_PER_SAMPLE = 16
WAV_HEADER_SIZE = 44

# RIFF size field is 36 + data length and must fit in a uint32
UINT32_MAX = 0xFFFFFFFF
MAX_DATA_LENGTH = UINT32_MAX - 36

_PCM_FORMAT = 1
_FMT_CHUNK_SIZE = 16
_HEADER_STRUCT = struct.Struct('<4sI4s4sIHHIIHH4sI')


def create_wav_header(data_length: int, sample_rate: int = SAMPLE_RATE) -> bytes:
    """
    Build the 44-byte WAV header for mono 16-bit PCM.

    Args:
        data_length: Number of PCM bytes that will follow the header
        sample_rate: Samples per second

    Returns:
        The header as bytes

    Raises:
        AudioFormatError: If the length or sample rate cannot be encoded
    """
    if not isinstance(data_length, int) or data_length < 0:
        raise AudioFormatError(f"Invalid PCM data length: {data_length!r}")
    if data_length > MAX_DATA_LENGTH:
        raise AudioFormatError(f"PCM data too large for a WAV container: {data_length} bytes")

    block_align = NUM_CHANNELS * (BITS_PER_SAMPLE // 8)
    if not isinstance(sample_rate, int) or isinstance(sample_rate, bool) or sample_rate <= 0 \
            or sample_rate * block_align > UINT32_MAX:
        raise AudioFormatError(f"Invalid sample rate: {sample_rate!r}")

    byte_rate = sample_rate * block_align

    return _HEADER_STRUCT.pack(
        b'RIFF',
        36 + data_length,
        b'WAVE',
        b'fmt ',
        _FMT_CHUNK_SIZE,
        _PCM_FORMAT,
        NUM_CHANNELS,
        sample_rate,
        byte_rate,
        block_align,
        BITS_PER_SAMPLE,
        b'data',
        data_length,
    )


def pcm_to_wav(pcm: bytes, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Prefix raw PCM bytes with a WAV header. The payload is not modified."""
    pcm = bytes(pcm)
    return create_wav_header(len(pcm), sample_rate) + pcm


def decode_base64_pcm(payload: str) -> bytes:
    """
    Decode the base64 audio payload returned by the speech model.

    Args:
        payload: Base64 text (str or ASCII bytes)

    Returns:
        Raw PCM bytes

    Raises:
        AudioFormatError: If the payload is not valid base64
    """
    if payload is None:
        raise AudioFormatError("No audio payload supplied")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AudioFormatError(f"Audio payload is not valid base64: {e}") from e


def base64_pcm_to_wav(payload: str, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Decode a base64 PCM payload and wrap it in a WAV container."""
    pcm = decode_base64_pcm(payload)
    logger.debug(f"Wrapping {len(pcm)} PCM bytes in WAV container at {sample_rate} Hz")
    return pcm_to_wav(pcm, sample_rate)


def wav_to_base64(pcm: bytes, sample_rate: int = SAMPLE_RATE) -> str:
    """Wrap raw PCM in a WAV container and return it base64-encoded for JSON transport."""
    return base64.b64encode(pcm_to_wav(pcm, sample_rate)).decode('ascii')
