"""Vision relay: answers exercises shown in images with Gemini, optionally by voice."""
