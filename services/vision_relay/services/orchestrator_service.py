"""Analyze pipeline orchestration

Validate -> Classify -> (Transcribe) -> BuildPrompt -> Complete -> (Synthesize)

Collaborators are injected so each external service can be swapped for a test
double. Transcription is best-effort; completion and synthesis failures abort
the request.
"""

from __future__ import annotations

import base64
import binascii
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from ..shared.constants import (AUDIO_DATA_URI_RE, DEFAULT_AUDIO_MIMETYPE, NO_IMAGE_MESSAGE,
                                PROFESSOR_LINE_TEMPLATE)
from ..shared.errors import ClientInputError, TranscriptionError
from ..shared.prompts import PromptTemplates

logger = logging.getLogger(__name__)


class Mode(str, enum.Enum):
    SIMPLE = "simple"
    COMPLEX = "complex"


class VisionCompleter(Protocol):
    async def complete(self, images: Sequence[str], prompt: str) -> str: ...


class Transcriber(Protocol):
    async def transcribe_audio(self, audio_data: bytes, mimetype: str = ..., language: Optional[str] = ...) -> str: ...


class Synthesizer(Protocol):
    async def synthesize_speech(self, text: str) -> bytes: ...


@dataclass
class AnalysisRequest:
    images: List[str]
    # base64, optionally a data:audio/...;base64, URI
    audio: Optional[str] = None
    transcript_text: Optional[str] = None

    def validate(self) -> None:
        if not self.images:
            raise ClientInputError(NO_IMAGE_MESSAGE)


@dataclass(frozen=True)
class Transcript:
    text: str


@dataclass(frozen=True)
class NoTranscript:
    reason: str
    text: str = field(default="", init=False)


TranscriptResult = Union[Transcript, NoTranscript]


@dataclass
class AnalysisResult:
    text: str
    mode: Mode
    elapsed_ms: int
    audio: Optional[bytes] = None
    transcript: TranscriptResult = field(default_factory=lambda: NoTranscript("no audio"))


def decode_audio(audio: str) -> Tuple[bytes, str]:
    """Split a base64 audio payload into raw bytes and its mimetype."""
    match = AUDIO_DATA_URI_RE.match(audio)
    mimetype = match.group(1) if match else DEFAULT_AUDIO_MIMETYPE
    payload = audio[match.end():] if match else audio
    try:
        return base64.b64decode(payload), mimetype
    except (binascii.Error, ValueError) as exc:
        raise TranscriptionError(f"Invalid base64 audio payload: {exc}") from exc


def classify(request: AnalysisRequest) -> Mode:
    if len(request.images) > 1 or request.audio or request.transcript_text:
        return Mode.COMPLEX
    return Mode.SIMPLE


def build_prompt(templates: PromptTemplates, mode: Mode, transcript: str = "") -> str:
    # The transcript is quoted as-is: whatever the speaker says reaches the model.
    prompt = templates.complex if mode is Mode.COMPLEX else templates.simple
    if transcript:
        prompt += PROFESSOR_LINE_TEMPLATE.format(transcript=transcript)
    return prompt


class AnalysisOrchestrator:
    def __init__(
        self,
        vision: VisionCompleter,
        templates: PromptTemplates,
        transcriber: Optional[Transcriber] = None,
        synthesizer: Optional[Synthesizer] = None,
        language: str = "fr",
    ):
        self.vision = vision
        self.templates = templates
        self.transcriber = transcriber
        self.synthesizer = synthesizer
        self.language = language

    async def transcribe(self, request: AnalysisRequest, mode: Mode) -> TranscriptResult:
        if request.transcript_text:
            return Transcript(request.transcript_text)
        if not request.audio or mode is not Mode.COMPLEX:
            return NoTranscript("no audio")
        if self.transcriber is None:
            return NoTranscript("transcription not available")

        try:
            audio_data, mimetype = decode_audio(request.audio)
            text = await self.transcriber.transcribe_audio(audio_data, mimetype, self.language)
        except Exception as exc:
            logger.warning(f"Transcription failed, continuing without transcript: {exc}")
            return NoTranscript(str(exc))

        if not text:
            return NoTranscript("empty transcript")
        logger.info(f'Transcription: "{text}"')
        return Transcript(text)

    async def run(self, request: AnalysisRequest, synthesize: bool = False) -> AnalysisResult:
        start = time.perf_counter()
        request.validate()

        mode = classify(request)
        logger.info(
            f"Mode: {mode.value.upper()}, Images: {len(request.images)}, "
            f"Audio: {'yes' if request.audio else 'no'}, "
            f"Transcription: {'yes' if request.transcript_text else 'no'}"
        )

        transcript = await self.transcribe(request, mode)
        prompt = build_prompt(self.templates, mode, transcript.text)

        text = await self.vision.complete(request.images, prompt)

        audio = None
        if synthesize:
            if self.synthesizer is None:
                raise RuntimeError("Speech synthesis is not configured")
            audio = await self.synthesizer.synthesize_speech(text)
            logger.info(f"Synthesized {len(audio)} bytes of audio")

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.info(f"Total time: {elapsed_ms}ms")
        return AnalysisResult(
            text=text,
            mode=mode,
            elapsed_ms=elapsed_ms,
            audio=audio,
            transcript=transcript,
        )

