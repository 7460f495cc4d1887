"""GenerationDispatcher: runs one image or video job end to end.

A request moves strictly forward: parse config, optional AI pre-processing
(trend expansion, variation specs), the sequential dispatch loop, then the
final status. The progress channel is closed on every exit path.
"""
import asyncio
import json
from typing import TYPE_CHECKING, AsyncIterator, Optional

from pydantic import ValidationError

from studio.core.logging import setup_logging
from studio.models.events import ProgressEvent
from studio.models.generation import (
    MAX_ANCHOR_IMAGES,
    AITrend,
    Attachments,
    GeneratedMedia,
    GenerationMode,
    GenerationRequest,
    VariationSpec,
)
from studio.services.progress import ProgressChannel
from studio.services.prompts import (
    build_image_prompt,
    build_video_prompt,
    resolve_duration,
    resolve_trend_text,
)

if TYPE_CHECKING:
    from studio.services.genai_client import GenAIClient
    from studio.services.presets import PresetCatalogs
    from studio.services.variations import VariationGenerator

logger = setup_logging("dispatcher")

# Progress band reserved for the per-variant image loop.
IMAGE_LOOP_START = 25
IMAGE_LOOP_SPAN = 60


class ConfigurationError(ValueError):
    """The submitted configuration is missing or invalid."""


def _format_validation_error(exc: ValidationError) -> str:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
        for err in exc.errors()
    )
    return f"Invalid configuration: {details}"


def parse_request(config_json: Optional[str], attachments: Attachments) -> GenerationRequest:
    """Build the GenerationRequest from the raw ``config`` form field.

    The moodboard image count always comes from the uploads; any value in the
    config is overwritten.

    Raises:
        ConfigurationError: When the config is absent, not JSON, or invalid.
    """
    if not config_json:
        raise ConfigurationError("No configuration provided")
    try:
        data = json.loads(config_json)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Configuration is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a JSON object")
    data["moodboardImageCount"] = len(attachments.moodboard_images)
    try:
        return GenerationRequest.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(_format_validation_error(exc)) from exc


def image_progress(index: int, total: int) -> int:
    """Progress reported before variant ``index`` (0-based) of ``total``."""
    return IMAGE_LOOP_START + (index * IMAGE_LOOP_SPAN) // total


class GenerationDispatcher:
    """Sequentially executes a generation request and reports progress.

    Exactly one ``result`` or ``error`` event is emitted per request. Both
    success and handled generation failures are followed by a final 100%
    status; configuration errors and unexpected failures end with the error
    alone. The channel is always closed.
    """

    def __init__(
        self,
        client: "GenAIClient",
        catalogs: "PresetCatalogs",
        variation_generator: "VariationGenerator",
    ) -> None:
        self.client = client
        self.catalogs = catalogs
        self.variation_generator = variation_generator
        self._tasks: set[asyncio.Task] = set()

    async def stream(
        self, config_json: Optional[str], attachments: Attachments
    ) -> AsyncIterator[ProgressEvent]:
        """Start ``run`` in the background and yield its events as they arrive.

        The job keeps running to completion even if the consumer stops reading.
        """
        channel = ProgressChannel()
        task = asyncio.create_task(self.run(config_json, attachments, channel))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        async for event in channel:
            yield event

    async def run(
        self,
        config_json: Optional[str],
        attachments: Attachments,
        channel: ProgressChannel,
    ) -> None:
        try:
            try:
                request = parse_request(config_json, attachments)
            except ConfigurationError as exc:
                logger.warning("Rejected configuration: %s", exc)
                channel.emit_error(str(exc))
                return

            channel.emit_status("Initializing AI generation...", 5)
            file_count = (
                len(attachments.image_inputs)
                if request.mode is GenerationMode.image
                else min(len(attachments.anchor_images), MAX_ANCHOR_IMAGES)
            )
            channel.emit_status(f"Processing {file_count} uploaded file(s)...", 10)

            generated_trend = await self._expand_trend(request, channel)
            channel.emit_status(f'Applying "{request.trend_id}" trend style...', 15)

            if request.mode is GenerationMode.image:
                await self._run_image(request, attachments, generated_trend, channel)
            else:
                await self._run_video(request, attachments, generated_trend, channel)

            channel.emit_status("Complete!", 100)
        except Exception as exc:
            logger.error(
                "Generation failed",
                exc_info=True,
                extra={"service": "GenerationDispatcher", "error_type": type(exc).__name__},
            )
            channel.emit_error(str(exc) or "Generation failed")
        finally:
            channel.close()

    async def _expand_trend(
        self, request: GenerationRequest, channel: ProgressChannel
    ) -> Optional[str]:
        """Expand an AI trend description; on failure the trend section is omitted."""
        selection = request.trend_selection
        if not isinstance(selection, AITrend) or not selection.description.strip():
            return None
        channel.emit_status("AI expanding creative trend description...", 12)
        try:
            return await self.client.expand_trend_description(selection.description, request.mode)
        except Exception as exc:
            logger.warning(
                "Trend expansion failed, omitting creative trend: %s",
                exc,
                extra={"service": "GenerationDispatcher", "error_type": type(exc).__name__},
            )
            return None

    async def _run_image(
        self,
        request: GenerationRequest,
        attachments: Attachments,
        generated_trend: Optional[str],
        channel: ProgressChannel,
    ) -> None:
        catalog = self.catalogs.image
        total = request.variant_count
        channel.emit_status(f"Connecting to {self.client.settings.image_model_id}...", 20)

        specs: list[VariationSpec] = []
        if total > 1 and request.variance_factors:
            channel.emit_status("AI generating unique creative variations...", 22)
            specs = await self.variation_generator.generate(
                base_direction=resolve_trend_text(request.trend_selection, catalog, generated_trend) or "",
                brand_guidelines=request.brand_guidelines or "",
                factors=request.variance_factors,
                variant_count=total,
            )

        reference_images = attachments.image_inputs or None
        results: list[GeneratedMedia] = []
        try:
            for i in range(total):
                channel.emit_status(f"Generating image {i + 1} of {total}...", image_progress(i, total))
                variation = specs[i - 1] if 0 < i <= len(specs) else None
                prompt = build_image_prompt(
                    request,
                    catalog,
                    reference_image_count=len(attachments.reference_images),
                    generated_trend=generated_trend,
                    variant_index=i,
                    variation=variation,
                )
                logger.debug("Variant %d prompt: %.500s", i + 1, prompt)
                results.append(
                    await self.client.generate_image(
                        prompt,
                        reference_images=reference_images,
                        aspect_ratio=request.aspect_ratio,
                        count=1,
                    )
                )
        except Exception as exc:
            logger.error(
                "Image generation failed at variant %d of %d: %s",
                len(results) + 1,
                total,
                exc,
                extra={"service": "GenerationDispatcher", "error_type": type(exc).__name__},
            )
            channel.emit_error(str(exc) or "Image generation failed")
            return

        channel.emit_status(f"{total} image(s) generated successfully!", 90)
        channel.emit_status("Preparing for preview...", 95)
        paths = [media.file_path for media in results]
        channel.emit_result(
            paths[0] if total == 1 else paths,
            {
                "type": "image",
                "count": total,
                "files": [media.model_dump(by_alias=True) for media in results],
                "trend": request.trend_id,
                "aspectRatio": request.aspect_ratio,
                "downloadUrl": paths[0],
            },
        )

    async def _run_video(
        self,
        request: GenerationRequest,
        attachments: Attachments,
        generated_trend: Optional[str],
        channel: ProgressChannel,
    ) -> None:
        channel.emit_status(f"Connecting to {self.client.settings.video_model_id}...", 20)
        anchors = attachments.anchor_images[:MAX_ANCHOR_IMAGES]
        duration = resolve_duration(bool(anchors), request.requested_duration)

        channel.emit_status("Processing reference images and narrative...", 30)
        prompt = build_video_prompt(
            request,
            self.catalogs.video,
            anchor_image_count=len(anchors),
            generated_trend=generated_trend,
        )
        logger.debug("Video prompt: %.500s", prompt)

        channel.emit_status("Generating video loop (this may take a few minutes)...", 40)
        try:
            media = await self.client.generate_video(
                prompt,
                anchor_images=anchors or None,
                duration=duration,
                aspect_ratio=request.aspect_ratio,
            )
        except Exception as exc:
            logger.error(
                "Video generation failed: %s",
                exc,
                extra={"service": "GenerationDispatcher", "error_type": type(exc).__name__},
            )
            channel.emit_error(str(exc) or "Video generation failed")
            return

        channel.emit_status("Video generated successfully!", 90)
        channel.emit_status("Preparing for preview...", 95)
        channel.emit_result(
            media.file_path,
            {
                "type": "video",
                "fileName": media.file_name,
                "mimeType": media.mime_type,
                "trend": request.trend_id,
                "duration": duration,
                "aspectRatio": request.aspect_ratio,
                "usedReferenceImages": bool(anchors),
                "downloadUrl": media.file_path,
            },
        )
