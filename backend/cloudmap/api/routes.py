import json
import logging
from datetime import datetime, timezone
from typing import Callable, List

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse, StreamingResponse

from cloudmap import config
from cloudmap.assistant.intent import Intent
from cloudmap.assistant.prompts import cdk_file_extension
from cloudmap.assistant.sessions import get_session_store
from cloudmap.db.session import recent_generations
from cloudmap.errors import ArchitectureNotFoundError, CdkCodeNotFoundError, InvalidRequestError
from cloudmap.inference.base import LLMClient
from cloudmap.inference.config import get_llm_client
from cloudmap.ir.architecture import Architecture
from cloudmap.pipeline.generator import adjust_architecture, generate_architecture, generate_cdk
from cloudmap.pipeline.orchestrator import JarvisOrchestrator
from cloudmap.schemas import (
    AdjustRequest,
    ArchitectureSummary,
    ChatResponse,
    GenerateCdkRequest,
    GenerateRequest,
    JarvisChatRequest,
    SaveCdkRequest,
    UpdateArchitectureRequest,
)
from cloudmap.store.architecture_store import get_store, utc_now_iso
from cloudmap.validation.architecture_validator import validate_architecture

logger = logging.getLogger(__name__)

router = APIRouter()


def get_client_factory() -> Callable[[], LLMClient]:
    """Dependency: builds the configured model client on demand."""
    return get_llm_client


def _require(value: str, field: str) -> str:
    if not value or not value.strip():
        raise InvalidRequestError(f"Invalid request: {field} is required")
    return value


def _load(architecture_id: str) -> Architecture:
    architecture = get_store().get(architecture_id)
    if architecture is None:
        raise ArchitectureNotFoundError(architecture_id)
    return architecture


# ============================================================
# GENERATION
# ============================================================

@router.post("/generate")
def generate(request: GenerateRequest, client_factory=Depends(get_client_factory)):
    prompt = _require(request.prompt, "prompt")
    architecture_id = generate_architecture(client_factory(), prompt)
    return {"id": architecture_id}


@router.post("/adjust")
def adjust(request: AdjustRequest, client_factory=Depends(get_client_factory)):
    _require(request.original_prompt, "originalPrompt")
    _require(request.adjustment_prompt, "adjustmentPrompt")
    _require(request.current_architecture_id, "currentArchitectureId")

    # 404 before touching the model
    _load(request.current_architecture_id)

    adjusted = adjust_architecture(
        client_factory(),
        request.current_architecture_id,
        request.original_prompt,
        request.adjustment_prompt,
    )
    return {"id": request.current_architecture_id, **adjusted.to_payload()}


# ============================================================
# ARCHITECTURE CRUD
# ============================================================

@router.get("/architecture/{architecture_id}")
def get_architecture(architecture_id: str):
    architecture = _load(architecture_id)
    return {
        **architecture.to_payload(),
        "validation": validate_architecture(architecture).to_dict(),
    }


@router.post("/update-architecture")
def update_architecture(request: UpdateArchitectureRequest):
    _require(request.architecture_id, "architectureId")
    _load(request.architecture_id)

    get_store().update_fields(
        request.architecture_id,
        nodes=request.nodes,
        edges=request.edges,
        metadata={"lastEdited": utc_now_iso(), "userEdited": True},
        edited_by="User",
    )
    logger.info("[API] Architecture %s edited by user", request.architecture_id)
    return {"id": request.architecture_id, "message": "Architecture updated successfully"}


@router.delete("/architecture/{architecture_id}")
def delete_architecture(architecture_id: str):
    if not get_store().delete(architecture_id):
        raise ArchitectureNotFoundError(architecture_id)
    get_session_store().clear(architecture_id)
    return {"id": architecture_id, "message": "Architecture deleted"}


@router.get("/architectures", response_model=List[ArchitectureSummary])
def list_architectures():
    return [
        ArchitectureSummary(
            id=architecture_id,
            serviceCount=len(architecture.nodes),
            connectionCount=len(architecture.edges),
            prompt=architecture.metadata.get("prompt"),
            lastEditedAt=architecture.metadata.get("lastEditedAt"),
        )
        for architecture_id, architecture in get_store().list()
    ]


# ============================================================
# CDK
# ============================================================

@router.post("/generate-cdk")
def generate_cdk_code(request: GenerateCdkRequest, client_factory=Depends(get_client_factory)):
    _require(request.architecture_id, "architectureId")
    _load(request.architecture_id)

    cdk_code = generate_cdk(client_factory(), request.architecture_id, request.language)
    return {"id": request.architecture_id, "cdkCode": cdk_code, "language": request.language}


@router.post("/save-cdk")
def save_cdk(request: SaveCdkRequest):
    _require(request.architecture_id, "architectureId")
    _load(request.architecture_id)

    get_store().update_fields(
        request.architecture_id,
        metadata={"cdkCode": request.cdk_code, "cdkLastEdited": utc_now_iso()},
        edited_by="User",
    )
    return {"id": request.architecture_id, "message": "CDK code saved successfully"}


@router.get("/download-cdk/{architecture_id}")
def download_cdk(architecture_id: str):
    architecture = _load(architecture_id)
    cdk_code = architecture.metadata.get("cdkCode")
    if not cdk_code:
        raise CdkCodeNotFoundError(architecture_id)

    extension = cdk_file_extension(architecture.metadata.get("cdkLanguage"))
    return PlainTextResponse(
        cdk_code,
        headers={"Content-Disposition": f'attachment; filename="architecture-{architecture_id}.{extension}"'},
    )


@router.get("/export-architecture/{architecture_id}")
def export_architecture(architecture_id: str):
    architecture = _load(architecture_id)
    return Response(
        json.dumps(architecture.to_payload(), indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="architecture-{architecture_id}.json"'},
    )


# ============================================================
# CONFIG / AUDIT
# ============================================================

@router.get("/check-config")
def check_config():
    cohere_configured = config.is_cohere_configured()
    openai_configured = config.is_openai_configured()

    provider_ready = {
        "cohere": cohere_configured,
        "openai": openai_configured,
    }.get(config.LLM_PROVIDER, False)

    error = None
    if not provider_ready:
        error = (
            f"{config.LLM_PROVIDER} API key is missing. "
            "Please add it to your .env file to enable Jarvis."
        )

    return {
        "cohereConfigured": cohere_configured,
        "openaiConfigured": openai_configured,
        "streamingEnabled": config.ENABLE_STREAMING,
        "primaryProvider": config.LLM_PROVIDER,
        "models": {
            "cohere": config.COHERE_MODEL,
            "openai": config.OPENAI_MODEL,
        },
        "debug": {
            "jarvis": config.DEBUG_JARVIS,
            "intent": config.DEBUG_INTENT_DETECTION,
            "prompts": config.DEBUG_PROMPTS,
        },
        "error": error,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/generations")
def list_generations(limit: int = 20):
    return recent_generations(limit)


# ============================================================
# JARVIS CHAT
# ============================================================

@router.post("/jarvis/chat", response_model=ChatResponse, response_model_exclude_none=True)
def jarvis_chat(request: JarvisChatRequest, client_factory=Depends(get_client_factory)):
    _require(request.message, "message")
    _require(request.architecture_id, "architectureId")

    orchestrator = JarvisOrchestrator(client_factory)
    return orchestrator.handle(
        request.architecture_id,
        request.message,
        history=request.history_dicts(),
        session_id=request.session_id,
    )


@router.post("/jarvis/chat/stream")
def jarvis_chat_stream(request: JarvisChatRequest, client_factory=Depends(get_client_factory)):
    """
    Stream the assistant answer as plain text.

    Architecture updates (and everything, when streaming is disabled) are
    answered in one piece, since the diagram must be parsed before replying.
    """
    _require(request.message, "message")
    _require(request.architecture_id, "architectureId")

    orchestrator = JarvisOrchestrator(client_factory)
    context = orchestrator.prepare_stream(
        request.architecture_id,
        request.message,
        history=request.history_dicts(),
        session_id=request.session_id,
    )

    intent = context.intent.intent.value if context.intent else Intent.GENERAL_CHAT.value
    confidence = f"{context.intent.confidence:.2f}" if context.intent else "0.00"

    if intent == Intent.ARCHITECTURE_UPDATE.value or not config.ENABLE_STREAMING:
        result = orchestrator.handle(
            request.architecture_id,
            request.message,
            history=request.history_dicts(),
            session_id=request.session_id,
        )
        return PlainTextResponse(
            result["response"],
            headers={
                "X-Intent-Type": result["metadata"]["intent"],
                "X-Intent-Confidence": f"{result['metadata']['confidence']:.2f}",
                "X-Architecture-Updated": str(result["architectureUpdated"]).lower(),
            },
        )

    return StreamingResponse(
        orchestrator.stream(request.architecture_id, context, session_id=request.session_id),
        media_type="text/plain; charset=utf-8",
        headers={
            "X-Intent-Type": intent,
            "X-Intent-Confidence": confidence,
            "Cache-Control": "no-cache",
        },
    )


@router.get("/jarvis/sessions/{session_id}")
def session_analytics(session_id: str):
    return get_session_store().analytics(session_id)


@router.delete("/jarvis/sessions/{session_id}")
def clear_session(session_id: str):
    return {"id": session_id, "cleared": get_session_store().clear(session_id)}
