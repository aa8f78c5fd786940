"""Shared constants for the vision relay"""

import re

SERVICE_NAME = "Vision Assistant Relay"
SERVICE_VERSION = "1.0.0"

MODES = ["simple", "complex"]

NO_IMAGE_MESSAGE = "No image provided"

# Transcript line appended to the prompt, quoted verbatim
PROFESSOR_LINE_TEMPLATE = '\n\nLe professeur dit : "{transcript}"'

IMAGE_DATA_URI_RE = re.compile(r"^data:image/\w+;base64,")
AUDIO_DATA_URI_RE = re.compile(r"^data:(audio/[\w.+-]+)(?:;[\w=.-]+)*;base64,")

DEFAULT_AUDIO_MIMETYPE = "audio/webm"
# Deepgram accepts these reliably once converted to WAV
AUDIO_FORMATS_TO_CONVERT = ["audio/webm", "audio/opus"]
MIN_AUDIO_BYTES = 100

TTS_MEDIA_TYPES = {
    "mp3": "audio/mpeg",
    "opus": "audio/ogg",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "linear16": "audio/wav",
}

# Answers with raw audio; errors on this route are plain text
MP3_ROUTE = "/analyze/mp3"
