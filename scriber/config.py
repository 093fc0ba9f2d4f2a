"""
Runtime settings read from environment variables
"""

import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 5000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Panels refresh cadence, in seconds
VIEW_PUSH_INTERVAL = float(os.getenv("VIEW_PUSH_INTERVAL", 0.5))

# Smaller chunks cannot hold a complete WebM file
MIN_AUDIO_CHUNK_BYTES = int(os.getenv("MIN_AUDIO_CHUNK_BYTES", 5000))

ASR_MODEL = os.getenv("ASR_MODEL", "whisper-1")
ASR_LANGUAGE = os.getenv("ASR_LANGUAGE", "en")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
