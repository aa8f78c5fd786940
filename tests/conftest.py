import base64
from io import BytesIO

import httpx
import pytest
from PIL import Image

from vision_relay.main import create_app
from vision_relay.routes.analyze import get_orchestrator
from vision_relay.services.orchestrator_service import AnalysisOrchestrator
from vision_relay.shared.config import Settings
from vision_relay.shared.prompts import PromptTemplates

SIMPLE_PROMPT = "SIMPLE: résous l'exercice."
COMPLEX_PROMPT = "COMPLEX: résous tout, réponds au prof."


def make_image_b64(color: str = "white", fmt: str = "PNG") -> str:
    buffer = BytesIO()
    Image.new("RGB", (4, 4), color).save(buffer, format=fmt)
    return base64.b64encode(buffer.getvalue()).decode("ascii")


class FakeVision:
    def __init__(self, reply: str = "Réponse A", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, images, prompt):
        self.calls.append({"images": list(images), "prompt": prompt})
        if self.error:
            raise self.error
        return self.reply


class FakeTranscriber:
    def __init__(self, transcript: str = "", error: Exception | None = None):
        self.transcript = transcript
        self.error = error
        self.calls = []

    async def transcribe_audio(self, audio_data, mimetype="audio/wav", language=None):
        self.calls.append({"audio": audio_data, "mimetype": mimetype, "language": language})
        if self.error:
            raise self.error
        return self.transcript


class FakeSynthesizer:
    def __init__(self, audio: bytes = b"ID3fake-mp3", error: Exception | None = None):
        self.audio = audio
        self.error = error
        self.calls = []

    async def synthesize_speech(self, text):
        self.calls.append(text)
        if self.error:
            raise self.error
        return self.audio


@pytest.fixture
def templates():
    return PromptTemplates(simple=SIMPLE_PROMPT, complex=COMPLEX_PROMPT, version="test")


@pytest.fixture
def image_a():
    return make_image_b64("red")


@pytest.fixture
def image_b():
    return make_image_b64("blue", fmt="JPEG")


@pytest.fixture
def make_settings():
    def _make(variant: str = "text", **overrides) -> Settings:
        settings = Settings()
        settings.deployment_variant = variant
        settings.gemini_model = "gemini-2.0-flash"
        settings.tts_encoding = "mp3"
        for key, value in overrides.items():
            setattr(settings, key, value)
        return settings

    return _make


@pytest.fixture
def client_for(templates, make_settings):
    """Build an httpx client bound to a fresh app wired to the given fakes."""

    def _client(vision, transcriber=None, synthesizer=None, variant="text"):
        app = create_app(make_settings(variant))
        orchestrator = AnalysisOrchestrator(
            vision=vision,
            templates=templates,
            transcriber=transcriber,
            synthesizer=synthesizer,
        )
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

    return _client
