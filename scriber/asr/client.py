"""
Speech recognition client (OpenAI Whisper) feeding utterances to the session
"""

import asyncio
import io
import logging
import os
import tempfile
from typing import Optional

from openai import OpenAI
from pydub import AudioSegment

from scriber import config

logger = logging.getLogger(__name__)

AUDIO_CONFIG = {
    "sample_rate": 16000,  # 16kHz is enough for speech
    "channels": 1,
    "format": "wav",
}

_openai_client: Optional[OpenAI] = None


def get_openai_client() -> OpenAI:
    """Create the OpenAI client on first use"""
    global _openai_client
    if _openai_client is None:
        _openai_client = OpenAI(api_key=config.OPENAI_API_KEY)
    return _openai_client


def convert_to_wav(audio_data: bytes) -> bytes:
    """
    Convert WebM/Opus (or any format ffmpeg reads) to 16kHz mono WAV

    Returns the original bytes when conversion fails.
    """
    try:
        audio = AudioSegment.from_file(io.BytesIO(audio_data))
        audio = audio.set_frame_rate(AUDIO_CONFIG["sample_rate"]).set_channels(AUDIO_CONFIG["channels"])

        wav_buffer = io.BytesIO()
        audio.export(wav_buffer, format=AUDIO_CONFIG["format"])
        wav_data = wav_buffer.getvalue()

        logger.debug(f"Audio converted: {len(audio_data)} bytes -> {len(wav_data)} bytes WAV")
        return wav_data
    except Exception as conv_error:
        logger.warning(f"Could not convert audio, using original: {conv_error}")
        return audio_data


async def transcribe_audio_chunk(audio_data: bytes) -> str:
    """
    Transcribe one audio chunk

    Args:
        audio_data: Audio bytes (WebM/Opus or WAV)

    Returns:
        Recognized text, or "" when recognition fails
    """
    try:
        wav_data = convert_to_wav(audio_data)

        with tempfile.NamedTemporaryFile(suffix=".wav", delete=False) as temp_file:
            temp_file.write(wav_data)
            temp_file_path = temp_file.name

        try:
            loop = asyncio.get_running_loop()
            transcription = await loop.run_in_executor(None, _transcribe_sync, temp_file_path)
            logger.info(f"Transcription done: {len(transcription)} characters")
            return transcription
        finally:
            os.unlink(temp_file_path)

    except Exception as e:
        logger.error(f"Audio transcription failed: {e}")
        return ""


def _transcribe_sync(audio_file_path: str) -> str:
    """Blocking Whisper call, run in the default executor"""
    with open(audio_file_path, "rb") as audio_file:
        response = get_openai_client().audio.transcriptions.create(
            model=config.ASR_MODEL,
            file=audio_file,
            language=config.ASR_LANGUAGE,
        )
    return response.text


def detect_audio_container(audio_data: bytes) -> Optional[str]:
    """Name of the container announced by the header, None if unknown"""
    if audio_data[:4] == b'RIFF' and audio_data[8:12] == b'WAVE':
        return "wav"
    if audio_data[:4] == b'\x1a\x45\xdf\xa3':  # EBML, what MediaRecorder emits
        return "webm"
    if audio_data[:4] == b'OggS':
        return "ogg"
    if audio_data[:3] == b'ID3' or audio_data[:2] in (b'\xff\xfb', b'\xff\xf3', b'\xff\xf2'):
        return "mp3"
    if audio_data[4:8] == b'ftyp':
        return "mp4"
    return None


def validate_audio_format(audio_data: bytes, min_bytes: Optional[int] = None) -> bool:
    """
    Check that a chunk is worth sending to the recognizer

    Args:
        audio_data: Audio bytes received from the client
        min_bytes: Smallest accepted size, MIN_AUDIO_CHUNK_BYTES by default

    Returns:
        True for a large enough chunk with a recognized container header
    """
    if min_bytes is None:
        min_bytes = config.MIN_AUDIO_CHUNK_BYTES

    if len(audio_data) < min_bytes:
        logger.debug(f"Audio chunk too small to transcribe: {len(audio_data)} bytes")
        return False

    if detect_audio_container(audio_data) is None:
        logger.warning(f"Unrecognized audio container, chunk dropped: {audio_data[:8]!r}")
        return False

    return True
