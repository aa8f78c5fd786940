import uvicorn

# Importing the settings module loads the .env file
from vision_relay.shared.config import get_settings

if __name__ == "__main__":
    settings = get_settings()

    print("\n🚀 Starting Vision Assistant Relay...")
    print(f"📍 Server will be available at: http://localhost:{settings.port}")
    print(f"   Model: {settings.gemini_model}")
    print(f"   Variant: {settings.deployment_variant}")
    print(f"   TTS: {'Deepgram ' + settings.tts_voice if settings.audio_enabled else 'browser (Web Speech API)'}")
    print("   Endpoints:")
    print("     GET  /health")
    print("     POST /analyze")
    if settings.audio_enabled:
        print("     POST /analyze/mp3")
    print()

    # Verify API keys are loaded
    if settings.gemini_api_key:
        print("✅ GEMINI_API_KEY loaded successfully")
    else:
        print("⚠️  WARNING: GEMINI_API_KEY not found in environment")
    if settings.audio_enabled and not settings.deepgram_api_key:
        print("⚠️  WARNING: DEEPGRAM_API_KEY not found in environment")

    uvicorn.run(
        "vision_relay.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
    )
