import base64
import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from ..services.asr_tts_service import DeepgramService
from ..services.orchestrator_service import AnalysisOrchestrator, AnalysisRequest
from ..services.vision_service import GeminiVisionService
from ..shared.config import Settings
from ..shared.constants import MP3_ROUTE, TTS_MEDIA_TYPES
from ..shared.errors import ClientInputError
from ..shared.prompts import load_templates
from ..shared.schemas import AnalyzeRequest, AnalyzeResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()
audio_router = APIRouter()


def current_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_orchestrator(request: Request) -> AnalysisOrchestrator:
    """Build the orchestrator from this app's settings on first use"""
    state = request.app.state
    orchestrator = getattr(state, "orchestrator", None)
    if orchestrator is None:
        settings = state.settings
        templates = getattr(state, "templates", None) or load_templates(settings.prompts_file)
        deepgram = DeepgramService(settings) if settings.audio_enabled else None
        orchestrator = AnalysisOrchestrator(
            vision=GeminiVisionService(settings),
            templates=templates,
            transcriber=deepgram,
            synthesizer=deepgram,
            language=settings.stt_language,
        )
        state.orchestrator = orchestrator
    return orchestrator


def to_analysis_request(body: AnalyzeRequest, settings: Settings) -> AnalysisRequest:
    """Keep only the spoken input the current deployment understands."""
    if settings.audio_enabled:
        return AnalysisRequest(images=body.image_list(), audio=body.audio or None)
    return AnalysisRequest(images=body.image_list(), transcript_text=body.transcription or None)


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze(
    body: AnalyzeRequest,
    settings: Settings = Depends(current_settings),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Answer the exercise shown in the image(s); text, plus audio when enabled"""
    try:
        result = await orchestrator.run(
            to_analysis_request(body, settings),
            synthesize=settings.audio_enabled,
        )
    except ClientInputError as e:
        return JSONResponse(status_code=400, content={"error": e.message})
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": str(e), "success": False})

    return AnalyzeResponse(
        text=result.text,
        mode=result.mode.value,
        timing=result.elapsed_ms,
        audio=base64.b64encode(result.audio).decode("ascii") if result.audio else None,
    )


@audio_router.post(MP3_ROUTE, response_class=Response)
async def analyze_mp3(
    body: AnalyzeRequest,
    settings: Settings = Depends(current_settings),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Same as /analyze but answers with the synthesized audio only"""
    try:
        result = await orchestrator.run(to_analysis_request(body, settings), synthesize=True)
    except ClientInputError as e:
        return PlainTextResponse(e.message, status_code=400)
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        return PlainTextResponse(str(e), status_code=500)

    return Response(
        content=result.audio,
        media_type=TTS_MEDIA_TYPES.get(settings.tts_encoding, "application/octet-stream"),
    )
