"""
AI Scriber - Main FastAPI Application
Hands-free encounter scribe with live differential, follow-ups, orders and SOAP note
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
import uvicorn

from scriber import config
from scriber.asr.client import transcribe_audio_chunk, validate_audio_format
from scriber.models import EncounterView, UtteranceIn
from scriber.panels.display import render_panels
from scriber.session import Session

# Logging configuration
logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="AI Scriber", version="1.0.0")

# One in-memory encounter per process
SESSION = Session()
AUDIO_QUEUE: Optional[asyncio.Queue] = None
TRANSCRIPTION_WORKER: Optional[asyncio.Task] = None


@app.get("/healthz")
async def health_check():
    """Service health endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "transcript_lines": len(SESSION.transcript),
        "findings": len(SESSION.findings),
    }


@app.post("/utterances", status_code=202)
def submit_utterance(utterance: UtteranceIn):
    """Receive a recognized phrase; blank text is accepted and ignored"""
    SESSION.submit_utterance(utterance.text)
    return {"accepted": True}


@app.get("/view", response_model=EncounterView)
def get_view():
    return SESSION.get_view()


@app.get("/view/panels")
def get_panels():
    """Panels rendered as plain text"""
    return render_panels(SESSION.get_view())


@app.post("/demo", response_model=EncounterView)
def seed_demo():
    """Replay the canned demo conversation"""
    SESSION.seed_demo()
    return SESSION.get_view()


async def process_audio_queue(queue: asyncio.Queue):
    """Transcribe audio chunks in arrival order and submit the text"""
    logger.info("Starting transcription worker")

    try:
        while True:
            audio_chunk = await queue.get()
            try:
                transcription = await transcribe_audio_chunk(audio_chunk)
                if transcription and transcription.strip():
                    SESSION.submit_utterance(transcription)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Failed to submit transcription: {e}")
            finally:
                queue.task_done()
    except asyncio.CancelledError:
        logger.debug("Transcription worker stopped")
        raise


def ensure_transcription_worker() -> asyncio.Queue:
    global AUDIO_QUEUE, TRANSCRIPTION_WORKER

    worker = TRANSCRIPTION_WORKER
    if worker is None or worker.done() or worker.get_loop() is not asyncio.get_running_loop():
        AUDIO_QUEUE = asyncio.Queue()
        TRANSCRIPTION_WORKER = asyncio.create_task(process_audio_queue(AUDIO_QUEUE))
    return AUDIO_QUEUE


@app.websocket("/ws/audio")
async def websocket_audio_endpoint(websocket: WebSocket):
    """
    Receive audio chunks (binary) or already recognized phrases (text)
    """
    await websocket.accept()
    logger.info("Audio connection established")

    try:
        queue = ensure_transcription_worker()

        while True:
            data = await websocket.receive()

            if data["type"] == "websocket.disconnect":
                logger.info("Audio WebSocket disconnected")
                break

            if data.get("bytes") is not None:
                audio_chunk = data["bytes"]
                if validate_audio_format(audio_chunk):
                    await queue.put(audio_chunk)

            elif data.get("text") is not None:
                text_data = data["text"]

                if text_data == "__finalize__":
                    await queue.join()
                    await websocket.send_json({
                        "type": "final_view",
                        "data": SESSION.get_view().model_dump(),
                    })
                    await websocket.close()
                    break

                SESSION.submit_utterance(text_data)

    except WebSocketDisconnect:
        logger.info("Audio WebSocket disconnected")
    except Exception as e:
        logger.error(f"Audio WebSocket error: {e}")


@app.websocket("/ws/view")
async def websocket_view_endpoint(websocket: WebSocket):
    """
    Push the current view on connect and then at a fixed interval
    """
    await websocket.accept()
    logger.info("View connection established")

    try:
        while True:
            view = SESSION.get_view().model_dump()
            view["updated_at"] = datetime.now().timestamp()
            await websocket.send_json(view)

            # Any client message triggers an immediate refresh
            try:
                await asyncio.wait_for(websocket.receive_text(), timeout=config.VIEW_PUSH_INTERVAL)
            except asyncio.TimeoutError:
                pass

    except WebSocketDisconnect:
        logger.info("View WebSocket disconnected")
    except Exception as e:
        logger.error(f"View WebSocket error: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop the transcription worker"""
    logger.info("Shutting down...")

    if TRANSCRIPTION_WORKER is not None and TRANSCRIPTION_WORKER.get_loop() is asyncio.get_running_loop():
        TRANSCRIPTION_WORKER.cancel()
        await asyncio.gather(TRANSCRIPTION_WORKER, return_exceptions=True)


def validate_startup_requirements():
    """Warn when audio intake cannot work"""
    if not config.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set: audio transcription is disabled, text utterances still work")

    logger.info("Startup checks done")


if __name__ == "__main__":
    validate_startup_requirements()

    logger.info(f"Starting server on {config.HOST}:{config.PORT}")
    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower(),
    )
