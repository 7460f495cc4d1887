"""Structured prompt assembly for the image and video engines.

Every prompt is an ordered list of titled sections joined by ``SECTION_SEPARATOR``.
Sections whose preconditions do not hold are left out entirely, so a prompt never
contains an empty section or a doubled separator. All functions here are pure:
the same request always renders the same text.
"""
from typing import Iterable, Optional

from studio.models.generation import (
    AITrend,
    CustomTrend,
    GenerationRequest,
    ImagePurpose,
    PresetTrend,
    ReferenceImageSpec,
    TrendSelection,
    VarianceFactor,
    VariationSpec,
)
from studio.services.presets import PresetCatalog

SECTION_SEPARATOR = "\n\n---\n\n"

DEFAULT_PRIMARY_COLOR = "#25F4EE"
DEFAULT_SECONDARY_COLOR = "#FE2C55"

ANCHORED_VIDEO_DURATION = "8s"
DEFAULT_VIDEO_DURATION = "6s"

DEFAULT_IMAGE_BRAND_GUIDELINES = (
    "Professional, modern brand aesthetic with clean composition, "
    "high production quality and a premium, trustworthy feel."
)

DEFAULT_VIDEO_BRAND_GUIDELINES = """Professional, modern brand aesthetic built for short-form vertical video.
DO:
- Establish the product within the first second
- Keep every movement purposeful and readable on a phone screen
- Keep the product on screen for most of the runtime
- Favor clean, uncluttered backgrounds that keep attention on the product
DON'T:
- Open with a slow intro or a fade from black
- Pack in more actions than the duration can comfortably hold
- Cut away from the product for long stretches
- Add on-screen text that competes with the product"""

COMPOSITING_REQUIREMENTS = """COMPOSITING REQUIREMENTS:
- Integrate every element seamlessly so the result reads as one photograph
- Match lighting direction, color temperature, perspective and scale across elements
- Blend edges naturally with no cut-out halos or hard seams
- Keep depth of field consistent across the whole composition"""

IMAGE_ASPECT_HINTS: dict[str, str] = {
    "9:16": (
        "Vertical full-screen composition; keep the subject in the central safe zone, "
        "clear of the top caption area and the bottom interface overlays."
    ),
    "1:1": "Square composition; center the subject with balanced margins on every side.",
    "4:5": "Portrait feed composition; fill the frame vertically while leaving breathing room at the edges.",
    "16:9": "Landscape composition; use the horizontal space for context while keeping the subject prominent.",
}
DEFAULT_IMAGE_ASPECT_HINT = "Frame the subject prominently with balanced composition for the requested format."

VIDEO_ASPECT_HINTS: dict[str, str] = {
    "9:16": (
        "Native vertical full-screen video; stage the action in the center of the frame "
        "and keep the top and bottom edges free of key details."
    ),
    "1:1": "Square video; keep the action centered so it crops cleanly into feeds.",
    "16:9": "Landscape video; use lateral movement and keep the product near the center third.",
}
DEFAULT_VIDEO_ASPECT_HINT = "Keep the action centered and readable for the requested format."

VIDEO_FRAMING_GUIDELINES = """Framing guidelines:
- Keep the product inside the central safe area for the whole clip
- Use one continuous, motivated camera move rather than many small ones
- Design for loop playback: the final frame should flow naturally back into the first frame
- Avoid hard cuts in the last half-second so the loop point stays invisible"""

REFERENCE_PURPOSE_LABELS: dict[ImagePurpose, str] = {
    ImagePurpose.character: "Main character/subject",
    ImagePurpose.product: "Product to be featured",
    ImagePurpose.environment: "Brand environment/location",
    ImagePurpose.keyframe: "Key frame/scene composition",
    ImagePurpose.style_guide: "Visual style reference",
}
DEFAULT_CUSTOM_PURPOSE_LABEL = "Custom reference"

NARRATIVE_TEMPLATES: dict[str, str] = {
    "problem-solution": "Show a relatable problem, then the product solving it.",
    "before-after": "Contrast the state before the product with the improved state after it.",
    "unboxing": "Build anticipation through the unboxing, then reveal the product in full.",
    "day-in-the-life": "Place the product naturally inside a short everyday routine.",
    "transformation": "Show the product driving a visible transformation from start to finish.",
}

VARIATION_LABELS: dict[VarianceFactor, str] = {
    VarianceFactor.lighting: "Lighting",
    VarianceFactor.environment: "Environment",
    VarianceFactor.camera_angle: "Camera angle",
    VarianceFactor.materials: "Materials",
}


def resolve_duration(has_anchor_images: bool, requested: Optional[str]) -> str:
    """Return the duration actually used for a video request.

    Anchor images lock the model to its maximum clip length, whatever the
    caller asked for.
    """
    if has_anchor_images:
        return ANCHORED_VIDEO_DURATION
    return requested or DEFAULT_VIDEO_DURATION


def resolve_trend_text(
    selection: TrendSelection,
    catalog: PresetCatalog,
    generated_text: Optional[str] = None,
) -> Optional[str]:
    """Resolve a trend selection to prompt text, or None when the section is omitted.

    Unknown preset ids resolve to None rather than failing the request.
    """
    text: Optional[str] = None
    if isinstance(selection, PresetTrend):
        preset = catalog.lookup(selection.preset_id)
        text = preset.prompt if preset is not None else None
    elif isinstance(selection, AITrend):
        text = generated_text
    elif isinstance(selection, CustomTrend):
        text = selection.prompt
    if text is None or not text.strip():
        return None
    return text.strip()


def _join(sections: Iterable[Optional[str]]) -> str:
    return SECTION_SEPARATOR.join(s for s in sections if s)


def _color_lines(request: GenerationRequest) -> str:
    primary = request.primary_color or DEFAULT_PRIMARY_COLOR
    secondary = request.secondary_color or DEFAULT_SECONDARY_COLOR
    return (
        f"Primary color: {primary}\n"
        f"Secondary color: {secondary}\n"
        "The primary color should dominate the palette; use the secondary color as an accent."
    )


def _duration_seconds(duration: str) -> int:
    return int(duration.rstrip("s"))


# ---------------------------------------------------------------------------
# Image prompt
# ---------------------------------------------------------------------------


def _interaction_section(request: GenerationRequest, reference_image_count: int) -> Optional[str]:
    text = (request.reference_image_interaction_text or "").strip()
    if not text or reference_image_count <= 1:
        return None
    return f"REFERENCE IMAGES INTERACTION:\n{text}\n\n{COMPOSITING_REQUIREMENTS}"


def _moodboard_section(moodboard_image_count: int, reference_image_count: int) -> Optional[str]:
    if moodboard_image_count <= 0:
        return None
    refs = ", ".join(
        f"[image {reference_image_count + n}]" for n in range(1, moodboard_image_count + 1)
    )
    return (
        "MOODBOARD:\n"
        f"Moodboard images: {refs}\n"
        "Emulate the mood, lighting, color grading and composition of these moodboard "
        "images. Use them only as a stylistic guide: do not copy their subjects, "
        "products or content."
    )


def build_variation_addendum(
    variant_number: int,
    variation: Optional[VariationSpec],
    factors: Iterable[VarianceFactor],
) -> Optional[str]:
    """Render the per-variant block for variant ``variant_number`` (1-based).

    Only requested factors with a value are listed; nothing is rendered for the
    first variant or when no line survives.
    """
    if variant_number <= 1 or variation is None:
        return None
    requested = set(factors)
    lines = [
        f"{label}: {value}"
        for factor, label in VARIATION_LABELS.items()
        if factor in requested and (value := variation.value_for(factor))
    ]
    if not lines:
        return None
    return f"VARIANT {variant_number} SPECIFIC STYLE:\n" + "\n".join(lines)


def build_image_prompt(
    request: GenerationRequest,
    catalog: PresetCatalog,
    *,
    reference_image_count: int,
    generated_trend: Optional[str] = None,
    variant_index: int = 0,
    variation: Optional[VariationSpec] = None,
) -> str:
    """Assemble the image prompt for one variant (``variant_index`` is 0-based)."""
    trend = resolve_trend_text(request.trend_selection, catalog, generated_trend)
    brand = (request.brand_guidelines or "").strip() or DEFAULT_IMAGE_BRAND_GUIDELINES
    ratio = request.aspect_ratio
    return _join(
        [
            _interaction_section(request, reference_image_count),
            f"CREATIVE TREND:\n{trend}" if trend else None,
            f"BRAND GUIDELINES:\n{brand}",
            f"COLOR PALETTE:\n{_color_lines(request)}",
            _moodboard_section(request.moodboard_image_count, reference_image_count),
            (
                "IMAGE SPECIFICATIONS:\n"
                f"Aspect ratio: {ratio}\n"
                f"Composition: {IMAGE_ASPECT_HINTS.get(ratio, DEFAULT_IMAGE_ASPECT_HINT)}"
            ),
            build_variation_addendum(variant_index + 1, variation, request.variance_factors),
        ]
    )


# ---------------------------------------------------------------------------
# Video prompt
# ---------------------------------------------------------------------------


def reference_label(spec: ReferenceImageSpec) -> str:
    if spec.purpose is ImagePurpose.custom:
        return (spec.custom_description or "").strip() or DEFAULT_CUSTOM_PURPOSE_LABEL
    return REFERENCE_PURPOSE_LABELS[spec.purpose]


def _reference_images_section(request: GenerationRequest, anchor_image_count: int) -> Optional[str]:
    if anchor_image_count <= 0:
        return None
    lines = []
    for i in range(anchor_image_count):
        spec = request.reference_images[i] if i < len(request.reference_images) else ReferenceImageSpec()
        lines.append(f"[image {i + 1}]: {reference_label(spec)}")
    return (
        "REFERENCE IMAGES:\n"
        + "\n".join(lines)
        + f"\n\nNOTE: Reference images are provided, so this video is constrained to "
        f"{_duration_seconds(ANCHORED_VIDEO_DURATION)} seconds. Every beat must fit inside that runway."
    )


def _narrative_section(request: GenerationRequest, duration: str, has_anchor_images: bool) -> str:
    parts = [f"NARRATIVE (most important):\n{(request.narrative or '').strip()}"]
    template = (request.narrative_template or "").strip()
    if template:
        parts.append(f"Structure: {NARRATIVE_TEMPLATES.get(template, template)}")
    if has_anchor_images:
        seconds = _duration_seconds(duration)
        parts.append(
            "Timeline:\n"
            "- 0-2s Hook: open on the most arresting visual to stop the scroll\n"
            f"- 2-{seconds - 2}s Core action: deliver the main story beat with the product in focus\n"
            f"- {seconds - 2}-{seconds}s Payoff: land the final hero moment, ready to loop"
        )
    return "\n\n".join(parts)


def build_video_prompt(
    request: GenerationRequest,
    catalog: PresetCatalog,
    *,
    anchor_image_count: int,
    generated_trend: Optional[str] = None,
) -> str:
    """Assemble the video prompt. Duration follows ``resolve_duration``."""
    has_anchor_images = anchor_image_count > 0
    duration = resolve_duration(has_anchor_images, request.requested_duration)
    trend = resolve_trend_text(request.trend_selection, catalog, generated_trend)
    brand = (request.brand_guidelines or "").strip() or DEFAULT_VIDEO_BRAND_GUIDELINES
    ratio = request.aspect_ratio
    return _join(
        [
            _reference_images_section(request, anchor_image_count),
            f"CREATIVE TREND:\n{trend}" if trend else None,
            f"BRAND GUIDELINES:\n{brand}",
            (
                f"COLOR PALETTE:\n{_color_lines(request)}\n"
                "Keep both colors consistent across every second of the clip; avoid "
                "palette shifts between moments unless the narrative calls for them."
            ),
            _narrative_section(request, duration, has_anchor_images),
            (
                "VIDEO SPECIFICATIONS:\n"
                f"Aspect ratio: {ratio}\n"
                f"Duration: {duration}\n"
                f"Format guidance: {VIDEO_ASPECT_HINTS.get(ratio, DEFAULT_VIDEO_ASPECT_HINT)}\n"
                f"{VIDEO_FRAMING_GUIDELINES}"
            ),
        ]
    )
