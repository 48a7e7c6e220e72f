from .wav import (
    SAMPLE_RATE,
    NUM_CHANNELS,
    BITS_PER_SAMPLE,
    WAV_HEADER_SIZE,
    create_wav_header,
    pcm_to_wav,
    decode_base64_pcm,
    base64_pcm_to_wav,
    wav_to_base64
)

__all__ = ['SAMPLE_RATE', 'NUM_CHANNELS', 'BITS_PER_SAMPLE', 'WAV_HEADER_SIZE',
           'create_wav_header', 'pcm_to_wav', 'decode_base64_pcm',
           'base64_pcm_to_wav', 'wav_to_base64']
