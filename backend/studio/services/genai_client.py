"""Thin wrapper around the Gemini / Veo models (google-genai SDK)."""
import asyncio
import logging
from typing import Any, Optional

from google import genai  # type: ignore[import-untyped]
from google.genai import types  # type: ignore[import-untyped]

from studio.core.config import Settings
from studio.models.generation import MAX_ANCHOR_IMAGES, GeneratedMedia, GenerationMode
from studio.services.media import MediaStore

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """The provider failed or returned nothing usable."""


class VideoTimeoutError(GenerationError):
    """Video polling exceeded its wall-clock budget."""


def sniff_image_mime(data: bytes) -> str:
    """Best-effort MIME type for an uploaded image; PNG when unrecognised."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/png"


def _expansion_prompt(short_text: str, mode: GenerationMode) -> str:
    if mode is GenerationMode.video:
        return (
            "You are a creative director for short-form vertical video ads.\n"
            "Expand the idea below into concrete creative direction for an AI video "
            "model: camera movement, pacing, lighting, mood and sound. Everything you "
            "describe must be achievable within a single 8-second clip, so keep it to "
            "one continuous idea with at most three beats.\n"
            "Answer with the direction only, in 3-5 sentences, no preamble.\n\n"
            f"Idea: {short_text}"
        )
    return (
        "You are a creative director for short-form vertical social media product imagery.\n"
        "Expand the idea below into concrete creative direction for an AI image "
        "model: lighting, composition, styling, textures and mood.\n"
        "Answer with the direction only, in 3-5 sentences, no preamble.\n\n"
        f"Idea: {short_text}"
    )


class GenAIClient:
    """Calls the image, video and text models and stores the rendered media.

    The underlying ``genai.Client`` is created on first use and reused for the
    lifetime of the process.
    """

    def __init__(self, settings: Settings, media_store: MediaStore) -> None:
        self.settings = settings
        self.media_store = media_store
        self._client: Optional[genai.Client] = None

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self) -> genai.Client:
        if self.settings.use_vertexai:
            logger.info("Using Vertex AI (project=%s)", self.settings.gcp_project_id)
            return genai.Client(
                vertexai=True,
                project=self.settings.gcp_project_id,
                location=self.settings.vertex_ai_location,
            )
        if not self.settings.gemini_api_key:
            raise GenerationError("GEMINI_API_KEY or GOOGLE_API_KEY must be set")
        return genai.Client(api_key=self.settings.gemini_api_key)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def generate_image(
        self,
        prompt: str,
        reference_images: Optional[list[bytes]] = None,
        aspect_ratio: str = "9:16",
        count: int = 1,
    ) -> GeneratedMedia:
        """Generate one image and store it.

        Args:
            prompt: Fully assembled image prompt.
            reference_images: Images sent ahead of the prompt, in [image N] order.
            aspect_ratio: Target aspect ratio.
            count: Number of candidates requested; the first image is kept.

        Raises:
            GenerationError: When the call fails or no image part is returned.
        """
        try:
            image_bytes, mime_type = await self._call_image_api(
                prompt, reference_images or [], aspect_ratio, count
            )
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationError(f"Image generation failed: {exc}") from exc
        return self.media_store.save(image_bytes, "image", mime_type)

    async def _call_image_api(
        self,
        prompt: str,
        reference_images: list[bytes],
        aspect_ratio: str,
        count: int,
    ) -> tuple[bytes, str]:
        parts = [
            types.Part(inline_data=types.Blob(data=image, mime_type=sniff_image_mime(image)))
            for image in reference_images
        ]
        parts.append(types.Part(text=prompt))
        logger.info(
            "Calling %s with %d reference image(s)",
            self.settings.image_model_id,
            len(reference_images),
        )

        response = await self.client.aio.models.generate_content(
            model=self.settings.image_model_id,
            contents=[types.Content(role="user", parts=parts)],
            config=types.GenerateContentConfig(
                response_modalities=["IMAGE", "TEXT"],
                candidate_count=count,
                image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
            ),
        )

        candidates = response.candidates
        if not candidates or candidates[0].content is None:
            raise GenerationError("Image generation failed: no candidates returned")

        for part in candidates[0].content.parts or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data and (inline.mime_type or "").startswith("image/"):
                return bytes(inline.data), inline.mime_type
            if getattr(part, "text", None):
                logger.debug("Image model said: %.300s", part.text)

        raise GenerationError("Image generation failed: model did not return an image")

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    async def generate_video(
        self,
        prompt: str,
        anchor_images: Optional[list[bytes]] = None,
        duration: str = "6s",
        aspect_ratio: str = "9:16",
    ) -> GeneratedMedia:
        """Generate one video, polling until it completes or times out.

        Anchor images beyond the third are ignored.

        Raises:
            VideoTimeoutError: When the operation is still running after
                ``video_timeout_seconds``.
            GenerationError: When the call fails or no video is returned.
        """
        anchors = (anchor_images or [])[:MAX_ANCHOR_IMAGES]
        try:
            operation = await self._start_video(prompt, anchors, duration, aspect_ratio)
            operation = await self._wait_for_video(operation)
            video_bytes = await self._download_video(operation)
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationError(f"Video generation failed: {exc}") from exc
        return self.media_store.save(video_bytes, "video", "video/mp4")

    async def _start_video(
        self,
        prompt: str,
        anchors: list[bytes],
        duration: str,
        aspect_ratio: str,
    ) -> Any:
        config = types.GenerateVideosConfig(
            aspect_ratio=aspect_ratio,
            duration_seconds=int(duration.rstrip("s")),
        )
        if anchors:
            logger.info("Using %d reference image(s) for video generation", len(anchors))
            config.reference_images = [
                types.VideoGenerationReferenceImage(
                    image=types.Image(image_bytes=image, mime_type=sniff_image_mime(image)),
                    reference_type=types.VideoGenerationReferenceType.ASSET,
                )
                for image in anchors
            ]
        return await self.client.aio.models.generate_videos(
            model=self.settings.video_model_id,
            prompt=prompt,
            config=config,
        )

    async def _wait_for_video(self, operation: Any) -> Any:
        """Poll until done; ``video_timeout_seconds`` bounds the sleeps and RPCs together."""
        timeout = self.settings.video_timeout_seconds
        try:
            return await asyncio.wait_for(self._poll_video(operation), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise VideoTimeoutError(
                f"Video generation timed out after {timeout:g} seconds"
            ) from exc

    async def _poll_video(self, operation: Any) -> Any:
        polls = 0
        while not operation.done:
            polls += 1
            logger.info("Waiting for video... (poll %d)", polls)
            await asyncio.sleep(self.settings.video_poll_interval_seconds)
            operation = await self.client.aio.operations.get(operation)
        if getattr(operation, "error", None):
            raise GenerationError(f"Video generation failed: {operation.error}")
        return operation

    async def _download_video(self, operation: Any) -> bytes:
        response = operation.response
        videos = getattr(response, "generated_videos", None) if response is not None else None
        if not videos or videos[0].video is None:
            raise GenerationError("Video generation failed: no video in response")
        video = videos[0].video
        if video.video_bytes:
            return bytes(video.video_bytes)
        logger.info("Downloading video from %s", video.uri)
        return bytes(await self.client.aio.files.download(file=video))

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    async def generate_text(self, prompt: str, json_output: bool = False) -> str:
        """Single-turn text completion on the text model.

        Raises:
            GenerationError: When the model returns no text.
        """
        config = types.GenerateContentConfig(
            response_mime_type="application/json" if json_output else "text/plain",
        )
        response = await self.client.aio.models.generate_content(
            model=self.settings.text_model_id,
            contents=prompt,
            config=config,
        )
        text = response.text
        if not text:
            raise GenerationError("Text model returned an empty response")
        return text

    async def expand_trend_description(self, short_text: str, mode: GenerationMode) -> str:
        """Turn a short trend idea into full creative direction."""
        text = await self.generate_text(_expansion_prompt(short_text, mode))
        return text.strip()
