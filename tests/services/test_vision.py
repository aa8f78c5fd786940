import base64
import threading
from io import BytesIO
from types import SimpleNamespace

import pytest
from PIL import Image

from vision_relay.services import vision_service
from vision_relay.services.vision_service import GeminiVisionService, build_parts, extract_text, strip_data_uri
from vision_relay.shared.errors import CompletionError, ConfigurationError


class FakeGeminiModel:
    def __init__(self, response=None, error=None):
        self.response = response or SimpleNamespace(text="Réponse C")
        self.error = error
        self.calls = []

    def generate_content(self, parts, request_options=None):
        self.calls.append({"parts": parts, "request_options": request_options})
        if self.error:
            raise self.error
        return self.response


def test_strip_data_uri_removes_prefix(image_a):
    assert strip_data_uri(f"data:image/png;base64,{image_a}") == image_a
    assert strip_data_uri(f"data:image/jpeg;base64,{image_a}") == image_a


def test_strip_data_uri_leaves_bare_payload_unchanged(image_a):
    assert strip_data_uri(image_a) == image_a


def test_build_parts_puts_images_before_prompt(image_a, image_b):
    parts = build_parts([f"data:image/png;base64,{image_a}", image_b], "prompt")

    assert len(parts) == 3
    assert all(isinstance(part, Image.Image) for part in parts[:2])
    assert parts[0].format == "PNG"
    assert parts[1].format == "JPEG"
    assert parts[2] == "prompt"


def test_build_parts_decodes_stripped_payload(image_a):
    parts = build_parts([f"data:image/png;base64,{image_a}"], "p")
    expected = Image.open(BytesIO(base64.b64decode(image_a)))
    assert parts[0].size == expected.size
    assert parts[0].getpixel((0, 0)) == expected.convert(parts[0].mode).getpixel((0, 0))


def test_build_parts_rejects_non_image_payload():
    with pytest.raises(CompletionError):
        build_parts([base64.b64encode(b"not an image").decode()], "p")


def test_extract_text_falls_back_to_candidates():
    part = SimpleNamespace(text="Réponse D")
    response = SimpleNamespace(text="", candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])
    assert extract_text(response) == "Réponse D"


def test_extract_text_without_output_raises():
    with pytest.raises(CompletionError):
        extract_text(SimpleNamespace(text="", candidates=[]))


@pytest.mark.asyncio
async def test_complete_sends_all_images_and_prompt(make_settings, image_a, image_b):
    model = FakeGeminiModel()
    service = GeminiVisionService(make_settings(gemini_timeout=12.0), model=model)

    text = await service.complete([image_a, image_b], "résous")

    assert text == "Réponse C"
    assert len(model.calls) == 1
    parts = model.calls[0]["parts"]
    assert len(parts) == 3
    assert parts[-1] == "résous"
    assert model.calls[0]["request_options"] == {"timeout": 12.0}


@pytest.mark.asyncio
async def test_complete_wraps_sdk_errors(make_settings, image_a):
    service = GeminiVisionService(make_settings(), model=FakeGeminiModel(error=RuntimeError("429 quota")))

    with pytest.raises(CompletionError, match="429 quota"):
        await service.complete([image_a], "p")


def test_missing_api_key_is_a_configuration_error(make_settings):
    with pytest.raises(ConfigurationError):
        GeminiVisionService(make_settings(gemini_api_key=None))


@pytest.mark.asyncio
async def test_images_are_decoded_off_the_event_loop(monkeypatch, make_settings, image_a):
    threads = []
    original = vision_service.decode_image

    def recording_decode(image_data):
        threads.append(threading.current_thread())
        return original(image_data)

    monkeypatch.setattr(vision_service, "decode_image", recording_decode)
    service = GeminiVisionService(make_settings(), model=FakeGeminiModel())

    await service.complete([image_a, image_a], "p")

    assert len(threads) == 2
    assert all(thread is not threading.main_thread() for thread in threads)


@pytest.mark.asyncio
async def test_undecodable_image_keeps_its_own_error(make_settings):
    model = FakeGeminiModel()
    service = GeminiVisionService(make_settings(), model=model)

    with pytest.raises(CompletionError, match="Unreadable image payload"):
        await service.complete([base64.b64encode(b"not an image").decode()], "p")

    assert model.calls == []
