import os
from functools import lru_cache
from pathlib import Path
from dotenv import load_dotenv


services_dir = Path(__file__).parent.parent.parent
env_path = services_dir / ".env"
if env_path.exists():
    load_dotenv(dotenv_path=env_path)
else:
    # Try loading from current directory or parent directories
    load_dotenv()

VARIANT_TEXT = "text"
VARIANT_AUDIO = "audio"


class Settings:
    def __init__(self):
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = int(os.getenv("PORT", "3000"))

        # text: browser does TTS, client sends a transcription
        # audio: server transcribes the audio and synthesizes the reply
        self.deployment_variant = os.getenv("DEPLOYMENT_VARIANT", VARIANT_TEXT).strip().lower()

        self.gemini_api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        self.gemini_model = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
        self.gemini_timeout = float(os.getenv("GEMINI_TIMEOUT", "60"))

        self.deepgram_api_key = os.getenv("DEEPGRAM_API_KEY")
        self.deepgram_stt_model = os.getenv("DEEPGRAM_STT_MODEL", "nova-3")
        self.stt_language = os.getenv("STT_LANGUAGE", "fr")
        self.tts_voice = os.getenv("TTS_VOICE", "aura-2-agathe-fr")
        self.tts_speed = float(os.getenv("TTS_SPEED", "1.15"))
        self.tts_encoding = os.getenv("TTS_ENCODING", "mp3")
        self.deepgram_stt_timeout = float(os.getenv("DEEPGRAM_STT_TIMEOUT", "60"))
        self.deepgram_tts_timeout = float(os.getenv("DEEPGRAM_TTS_TIMEOUT", "30"))

        # JSON file with {"version", "simple", "complex"} overriding the built-in prompts
        self.prompts_file = os.getenv("PROMPTS_FILE")

        # Comma-separated list of allowed origins for CORS
        raw = os.getenv("ALLOWED_ORIGINS", "*")
        self.allowed_origins = [o.strip() for o in raw.split(",") if o.strip()]

    @property
    def audio_enabled(self) -> bool:
        return self.deployment_variant == VARIANT_AUDIO


@lru_cache()
def get_settings():
    return Settings()
