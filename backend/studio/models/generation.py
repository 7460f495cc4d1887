"""Generation request and result data models."""
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Base for models exchanged with the UI in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerationMode(str, Enum):
    """Which engine a request targets."""

    image = "IMAGE"
    video = "VIDEO"


class VarianceFactor(str, Enum):
    """Dimensions that may vary between image variants."""

    lighting = "lighting"
    environment = "environment"
    camera_angle = "camera-angle"
    materials = "materials"


class ImagePurpose(str, Enum):
    """What a video reference image is meant to anchor."""

    character = "character"
    product = "product"
    environment = "environment"
    keyframe = "keyframe"
    style_guide = "style-guide"
    custom = "custom"


IMAGE_ASPECT_RATIOS = ("9:16", "1:1", "4:5", "16:9")
VIDEO_ASPECT_RATIOS = ("9:16", "1:1", "16:9")
VIDEO_DURATIONS = ("4s", "6s", "8s")
MAX_ANCHOR_IMAGES = 3


class PresetTrend(_CamelModel):
    type: Literal["preset"] = "preset"
    preset_id: str


class AITrend(_CamelModel):
    type: Literal["ai"] = "ai"
    description: str


class CustomTrend(_CamelModel):
    type: Literal["custom"] = "custom"
    prompt: str


class SkipTrend(_CamelModel):
    type: Literal["skip"] = "skip"


TrendSelection = Annotated[
    Union[PresetTrend, AITrend, CustomTrend, SkipTrend],
    Field(discriminator="type"),
]


class ReferenceImageSpec(_CamelModel):
    """Purpose tag for one video anchor image, matched by position."""

    purpose: ImagePurpose = ImagePurpose.product
    custom_description: Optional[str] = None


# Flat trend fields sent by the dashboard UI, keyed by mode.
_FLAT_TREND_KEYS: dict[str, tuple[str, str, str, str]] = {
    "IMAGE": ("creativeTrendType", "selectedPreset", "aiTrendDescription", "customTrendPrompt"),
    "VIDEO": (
        "videoCreativeTrendType",
        "selectedVideoPreset",
        "aiVideoTrendDescription",
        "customVideoTrendPrompt",
    ),
}


class GenerationRequest(_CamelModel):
    """One image or video generation job, read-only once validated."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    mode: GenerationMode = Field(validation_alias=AliasChoices("mode", "protocolType"))
    trend_selection: TrendSelection = Field(default_factory=SkipTrend)
    brand_guidelines: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    aspect_ratio: str = "9:16"

    # Image-only
    variant_count: int = Field(default=1, ge=1, le=10)
    variance_factors: list[VarianceFactor] = Field(default_factory=list)
    reference_image_interaction_text: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "referenceImageInteractionText", "imageInteractionDescription"
        ),
    )
    moodboard_image_count: int = Field(default=0, ge=0)

    # Video-only
    reference_images: list[ReferenceImageSpec] = Field(
        default_factory=list, max_length=MAX_ANCHOR_IMAGES
    )
    narrative: Optional[str] = None
    narrative_template: Optional[str] = None
    requested_duration: Optional[Literal["4s", "6s", "8s"]] = Field(
        default=None,
        validation_alias=AliasChoices("requestedDuration", "videoLength"),
    )

    @model_validator(mode="before")
    @classmethod
    def _lift_flat_trend_fields(cls, data: Any) -> Any:
        """Accept the dashboard's flat trend fields in place of trendSelection."""
        if not isinstance(data, dict) or "trendSelection" in data or "trend_selection" in data:
            return data
        raw_mode = data.get("mode") or data.get("protocolType") or ""
        mode = raw_mode.value if isinstance(raw_mode, Enum) else str(raw_mode).upper()
        keys = _FLAT_TREND_KEYS.get(mode)
        if keys is None or keys[0] not in data:
            return data
        type_key, preset_key, ai_key, custom_key = keys
        kind = data[type_key]
        lifted: dict[str, Any]
        if kind == "preset":
            lifted = {"type": "preset", "presetId": data.get(preset_key) or ""}
        elif kind == "ai":
            lifted = {"type": "ai", "description": data.get(ai_key) or ""}
        elif kind == "custom":
            lifted = {"type": "custom", "prompt": data.get(custom_key) or ""}
        else:
            lifted = {"type": "skip"}
        return {**data, "trendSelection": lifted}

    @model_validator(mode="after")
    def _check_mode_fields(self) -> "GenerationRequest":
        allowed = IMAGE_ASPECT_RATIOS if self.mode is GenerationMode.image else VIDEO_ASPECT_RATIOS
        if self.aspect_ratio not in allowed:
            raise ValueError(
                f"aspectRatio {self.aspect_ratio!r} is not supported for "
                f"{self.mode.value} (allowed: {', '.join(allowed)})"
            )
        if self.mode is GenerationMode.video and not (self.narrative or "").strip():
            raise ValueError("narrative is required for video generation")
        return self

    @property
    def trend_id(self) -> str:
        """Identifier echoed back in result metadata."""
        selection = self.trend_selection
        if isinstance(selection, PresetTrend):
            return selection.preset_id
        return selection.type


class Attachments(BaseModel):
    """Binary uploads for one request, in submission order."""

    reference_images: list[bytes] = Field(default_factory=list)
    moodboard_images: list[bytes] = Field(default_factory=list)
    anchor_images: list[bytes] = Field(default_factory=list)

    @property
    def image_inputs(self) -> list[bytes]:
        """Reference images followed by moodboard images, as sent to the image model."""
        return [*self.reference_images, *self.moodboard_images]


class VariationSpec(_CamelModel):
    """Per-variant specialisation text for image variants 2..N."""

    lighting: Optional[str] = None
    environment: Optional[str] = None
    camera_angle: Optional[str] = None
    materials: Optional[str] = None

    def value_for(self, factor: VarianceFactor) -> Optional[str]:
        return getattr(self, FACTOR_FIELDS[factor])


FACTOR_FIELDS: dict[VarianceFactor, str] = {
    VarianceFactor.lighting: "lighting",
    VarianceFactor.environment: "environment",
    VarianceFactor.camera_angle: "camera_angle",
    VarianceFactor.materials: "materials",
}


class GeneratedMedia(_CamelModel):
    """A rendered file as returned to the caller."""

    file_path: str
    file_name: str
    mime_type: str
