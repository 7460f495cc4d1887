"""Generation API router: multipart submission in, SSE progress feed out."""
import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from starlette.datastructures import UploadFile

from studio.models.generation import Attachments, GenerationMode
from studio.services.dispatcher import GenerationDispatcher
from studio.services.presets import PresetCatalogs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generation"])

_INDEXED_KEY_RE = re.compile(r"^(productImage|anchorImage)_(\d+)$")
MOODBOARD_KEY = "lookAndFeel"


class PresetSummary(BaseModel):
    """Dropdown entry for a creative-trend preset."""

    id: str
    name: str
    description: str


def get_dispatcher(request: Request) -> GenerationDispatcher:
    """FastAPI dependency: retrieve GenerationDispatcher from app.state.

    Returns HTTP 503 if the services were not initialized at startup.
    """
    dispatcher: Optional[GenerationDispatcher] = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(
            status_code=503,
            detail="Generation service unavailable. Service not initialized.",
        )
    return dispatcher


def get_catalogs(request: Request) -> PresetCatalogs:
    catalogs: Optional[PresetCatalogs] = getattr(request.app.state, "catalogs", None)
    if catalogs is None:
        raise HTTPException(status_code=503, detail="Preset catalogs not loaded.")
    return catalogs


async def collect_attachments(form_items: list[tuple[str, object]]) -> Attachments:
    """Sort uploaded files into reference, moodboard and anchor images by form key.

    ``productImage_N`` and ``anchorImage_N`` are ordered by N; ``lookAndFeel``
    is the moodboard image. Other keys are ignored.
    """
    indexed: dict[str, list[tuple[int, bytes]]] = {"productImage": [], "anchorImage": []}
    moodboard: list[bytes] = []
    for key, value in form_items:
        if not isinstance(value, UploadFile):
            continue
        if key == MOODBOARD_KEY:
            moodboard.append(await value.read())
            continue
        match = _INDEXED_KEY_RE.match(key)
        if match is None:
            logger.debug("Ignoring upload field %s", key)
            continue
        indexed[match.group(1)].append((int(match.group(2)), await value.read()))

    def ordered(prefix: str) -> list[bytes]:
        return [data for _, data in sorted(indexed[prefix], key=lambda item: item[0])]

    return Attachments(
        reference_images=ordered("productImage"),
        moodboard_images=moodboard,
        anchor_images=ordered("anchorImage"),
    )


@router.post("/generate")
async def generate(
    request: Request,
    dispatcher: GenerationDispatcher = Depends(get_dispatcher),
) -> StreamingResponse:
    """Start an image or video generation job and stream its progress.

    The body is multipart form data with a JSON ``config`` field plus the
    uploaded images. Every event is one ``data: <json>`` SSE frame; the stream
    ends after the terminal ``result`` or ``error`` (and the final status).
    """
    async with request.form() as form:
        config = form.get("config")
        config_json = config if isinstance(config, str) else None
        attachments = await collect_attachments(list(form.multi_items()))
    logger.info(
        "generate: %d reference, %d moodboard, %d anchor image(s)",
        len(attachments.reference_images),
        len(attachments.moodboard_images),
        len(attachments.anchor_images),
    )

    async def event_stream():
        async for event in dispatcher.stream(config_json, attachments):
            yield event.to_sse()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/presets/{mode}", response_model=list[PresetSummary])
async def list_presets(
    mode: str,
    catalogs: PresetCatalogs = Depends(get_catalogs),
) -> list[PresetSummary]:
    """Return the creative-trend presets for the image or video engine."""
    try:
        generation_mode = GenerationMode(mode.upper())
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown mode: {mode}")
    return [
        PresetSummary(id=p.id, name=p.name, description=p.description)
        for p in catalogs.for_mode(generation_mode).presets()
    ]
