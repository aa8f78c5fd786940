import io
import logging

import httpx
from pydub import AudioSegment

from ..shared.config import Settings, get_settings
from ..shared.constants import AUDIO_FORMATS_TO_CONVERT, MIN_AUDIO_BYTES
from ..shared.errors import ConfigurationError, SynthesisError, TranscriptionError

logger = logging.getLogger(__name__)


class DeepgramService:
    """Service for Deepgram ASR and TTS operations"""

    base_url = "https://api.deepgram.com"

    def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        settings = settings or get_settings()
        if not settings.deepgram_api_key:
            raise ConfigurationError("DEEPGRAM_API_KEY environment variable is required")
        self.api_key = settings.deepgram_api_key
        self.settings = settings
        # Only set in tests, to route requests through httpx.MockTransport
        self.transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    def convert_audio_to_wav(self, audio_data: bytes, input_format: str) -> bytes:
        """Convert audio from various formats to WAV format"""
        logger.info(f"[Audio Conversion] Converting {input_format} to WAV...")
        audio_segment = AudioSegment.from_file(
            io.BytesIO(audio_data),
            format=input_format.replace("audio/", ""),
        )
        wav_buffer = io.BytesIO()
        audio_segment.export(wav_buffer, format="wav")
        wav_data = wav_buffer.getvalue()
        logger.info(f"[Audio Conversion] Converted {len(audio_data)} bytes to {len(wav_data)} bytes WAV")
        return wav_data

    async def transcribe_audio(self, audio_data: bytes, mimetype: str = "audio/wav", language: str | None = None) -> str:
        language = language or self.settings.stt_language

        if not audio_data or len(audio_data) < MIN_AUDIO_BYTES:
            raise TranscriptionError(f"Audio buffer too small: {len(audio_data or b'')} bytes")

        # WebM chunks recorded in the browser are not always a valid file
        if mimetype in AUDIO_FORMATS_TO_CONVERT:
            try:
                audio_data = self.convert_audio_to_wav(audio_data, mimetype)
                mimetype = "audio/wav"
            except Exception as conv_error:
                logger.warning(f"[Deepgram] Conversion failed, trying original format: {conv_error}")

        logger.info(f"[Deepgram] Sending audio: {len(audio_data)} bytes, mimetype: {mimetype}, language: {language}")

        url = f"{self.base_url}/v1/listen"
        headers = {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": mimetype,
        }
        params = {
            "model": self.settings.deepgram_stt_model,
            "language": language,
            "punctuate": "true",
            "smart_format": "true",
        }

        try:
            async with self._client(self.settings.deepgram_stt_timeout) as client:
                response = await client.post(url, headers=headers, params=params, content=audio_data)
        except httpx.HTTPError as exc:
            raise TranscriptionError(f"Transcription failed: {exc}") from exc

        if response.status_code != 200:
            raise TranscriptionError(
                f"Transcription failed: Status: {response.status_code}, Response: {response.text[:500]}",
                data={"status_code": response.status_code},
            )

        result = response.json()
        channels = result.get("results", {}).get("channels", [])
        if channels and channels[0].get("alternatives"):
            return channels[0]["alternatives"][0].get("transcript", "")
        return ""

    async def synthesize_speech(self, text: str) -> bytes:
        url = f"{self.base_url}/v1/speak"
        headers = {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": "application/json",
        }
        params = {
            "model": self.settings.tts_voice,
            "encoding": self.settings.tts_encoding,
            "speed": self.settings.tts_speed,
        }

        try:
            async with self._client(self.settings.deepgram_tts_timeout) as client:
                response = await client.post(url, headers=headers, params=params, json={"text": text})
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SynthesisError(
                f"TTS generation failed: HTTP {exc.response.status_code}: {exc.response.text[:500]}",
                data={"status_code": exc.response.status_code},
            ) from exc
        except httpx.HTTPError as exc:
            raise SynthesisError(f"TTS generation failed: {exc}") from exc

        return response.content

