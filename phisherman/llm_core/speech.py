"""
Text-to-speech through the Gemini speech model.

The speech model answers with inline audio: raw 16-bit little-endian PCM,
mono, 24 kHz. Callers wrap it with phisherman.audio before playback.
"""

import base64
import logging
import os
from typing import Optional

from google import genai
from google.genai import types, errors

from .api_provider import LLM
from ..audio import decode_base64_pcm
from ..exceptions import (
    MissingAPIKeyError,
    InvalidInputError,
    AudioGenerationError,
    AudioFormatError,
    APICallError,
)

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "Charon"


class SpeechSynthesizer:
    """Generates synthetic voice audio for vishing and deepfake simulations."""

    def __init__(self, model: Optional[str] = None, voice: Optional[str] = None, client=None):
        """
        Initialize the synthesizer.

        Args:
            model: Speech model id. Defaults to the 'speech' task in model_config.json
            voice: Prebuilt voice name. Defaults to the configured voice (Charon)
            client: Optional pre-built genai.Client
        """
        assignment = LLM.get_model_config().get_task_model("speech")
        self.model = model or assignment["model"]
        self.voice = voice or assignment.get("voice", DEFAULT_VOICE)
        self._client = client

    @property
    def client(self):
        """Gen AI client, created on first use."""
        if self._client is None:
            api_key = os.getenv("GEMINI_API_KEY")
            if not api_key:
                raise MissingAPIKeyError("GEMINI_API_KEY environment variable is not set")
            self._client = genai.Client(api_key=api_key)
        return self._client

    def _build_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=self.voice)
                )
            ),
        )

    @staticmethod
    def _extract_audio(response) -> Optional[bytes]:
        """Pull the inline audio bytes out of the first candidate, if any."""
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return None
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) or []
        if not parts:
            return None
        inline_data = getattr(parts[0], "inline_data", None)
        data = getattr(inline_data, "data", None)
        if isinstance(data, str):
            # REST transports may hand back the base64 text undecoded
            try:
                data = decode_base64_pcm(data)
            except AudioFormatError as e:
                raise AudioGenerationError(f"Speech model returned malformed audio: {e}") from e
        return data or None

    async def synthesize(self, text: str) -> bytes:
        """
        Convert text to raw PCM speech.

        Args:
            text: What the synthetic voice should say

        Returns:
            Raw 16-bit mono 24 kHz PCM bytes

        Raises:
            InvalidInputError: If the text is empty
            AudioGenerationError: If the model returns no audio
            APICallError: If the Gemini API call fails
        """
        if not text or not text.strip():
            raise InvalidInputError("Text for audio generation cannot be empty")

        client = self.client
        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=text,
                config=self._build_config(),
            )
        except errors.APIError as e:
            logger.error(f"Gemini API error during speech generation: {e}")
            raise APICallError(f"Speech generation failed: {e}") from e
        except Exception as e:
            logger.error(f"Speech request to {self.model} failed: {e}")
            raise APICallError(f"Speech generation failed: {e}") from e

        audio = self._extract_audio(response)
        if not audio:
            logger.error(f"Gemini TTS returned no audio data for model {self.model}")
            raise AudioGenerationError("No audio data received from Gemini API")

        logger.info(f"Generated {len(audio)} bytes of speech with voice {self.voice}")
        return audio

    async def synthesize_base64(self, text: str) -> str:
        """Convert text to speech and return the raw PCM base64-encoded."""
        audio = await self.synthesize(text)
        return base64.b64encode(audio).decode("ascii")
