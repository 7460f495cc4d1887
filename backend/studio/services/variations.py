"""Per-variant specialisations for multi-variant image batches."""
import json
import re
from typing import TYPE_CHECKING, Any, Optional, Sequence

from pydantic import ValidationError

from studio.core.logging import setup_logging
from studio.models.generation import FACTOR_FIELDS, VarianceFactor, VariationSpec

if TYPE_CHECKING:
    from studio.services.genai_client import GenAIClient

logger = setup_logging("variations")

CANNED_VARIATIONS: dict[VarianceFactor, tuple[str, ...]] = {
    VarianceFactor.lighting: (
        "soft natural lighting",
        "dramatic studio lighting",
        "golden hour glow",
        "cool blue tones",
        "warm ambient light",
    ),
    VarianceFactor.environment: (
        "minimal white background",
        "textured natural backdrop",
        "lifestyle setting",
        "abstract gradient background",
        "outdoor environment",
    ),
    VarianceFactor.camera_angle: (
        "eye-level front view",
        "slight overhead angle",
        "low angle hero shot",
        "dynamic 3/4 view",
        "top-down flat lay",
    ),
    VarianceFactor.materials: (
        "matte surfaces",
        "glossy reflective surfaces",
        "textured organic materials",
        "metallic accents",
        "soft fabric textures",
    ),
}

# Used for factors the caller did not ask to vary.
NEUTRAL_VARIATIONS: dict[VarianceFactor, str] = {
    VarianceFactor.lighting: "lighting consistent with the base creative direction",
    VarianceFactor.environment: "environment consistent with the base creative direction",
    VarianceFactor.camera_angle: "camera angle consistent with the base creative direction",
    VarianceFactor.materials: "materials consistent with the base creative direction",
}

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z]*\s*|\s*```\s*$")


def canned_variation(index: int, factors: Sequence[VarianceFactor]) -> VariationSpec:
    """Deterministic spec for position ``index``; always populates all four fields."""
    requested = set(factors)
    values = {
        FACTOR_FIELDS[factor]: (
            CANNED_VARIATIONS[factor][index % len(CANNED_VARIATIONS[factor])]
            if factor in requested
            else NEUTRAL_VARIATIONS[factor]
        )
        for factor in VarianceFactor
    }
    return VariationSpec(**values)


def strip_code_fence(text: str) -> str:
    return _FENCE_RE.sub("", text.strip())


def parse_variation_specs(text: str) -> Optional[list[Any]]:
    """Parse the model output into a list, or None when it is not a JSON array."""
    try:
        data = json.loads(strip_code_fence(text))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, list) else None


def _build_prompt(
    base_direction: str,
    brand_guidelines: str,
    factors: Sequence[VarianceFactor],
    spec_count: int,
) -> str:
    factor_names = ", ".join(f.value for f in factors)
    return f"""You are an art director planning a batch of social media product images.

The first image uses the base creative direction unchanged. Plan {spec_count} additional
variant(s). Each variant must be clearly distinct from the others while staying cohesive
with the brand.

## Base creative direction
{base_direction or "Clean, professional product imagery."}

## Brand guidelines
{brand_guidelines or "Professional, modern brand aesthetic."}

## Vary these factors
{factor_names}

Output ONLY a JSON array of exactly {spec_count} objects. Each object has exactly these
string fields: "lighting", "environment", "cameraAngle", "materials". Keep each value
to one short phrase. For factors not listed above, describe a neutral choice that stays
consistent with the base creative direction."""


class VariationGenerator:
    """Produces ``variant_count - 1`` VariationSpecs for variants 2..N.

    The text model is asked first; any failure to call it or to parse its
    answer falls back to the canned phrase lists, so this never raises for
    provider problems and never returns short.
    """

    def __init__(self, client: "GenAIClient") -> None:
        self.client = client

    async def generate(
        self,
        base_direction: str,
        brand_guidelines: str,
        factors: Sequence[VarianceFactor],
        variant_count: int,
    ) -> list[VariationSpec]:
        if variant_count <= 1 or not factors:
            return []
        spec_count = variant_count - 1

        raw: Optional[list[Any]] = None
        try:
            text = await self.client.generate_text(
                _build_prompt(base_direction, brand_guidelines, factors, spec_count),
                json_output=True,
            )
            raw = parse_variation_specs(text)
            if raw is None:
                logger.warning("Variation specs were not a JSON array; using canned variations")
        except Exception as exc:
            logger.warning(
                "Variation spec generation failed: %s",
                exc,
                extra={"service": "VariationGenerator", "error_type": type(exc).__name__},
            )

        raw = raw or []
        if len(raw) != spec_count:
            logger.info("Model returned %d variation spec(s), expected %d", len(raw), spec_count)
        return [
            self._coerce(raw[i] if i < len(raw) else None, i, factors)
            for i in range(spec_count)
        ]

    @staticmethod
    def _coerce(item: Any, index: int, factors: Sequence[VarianceFactor]) -> VariationSpec:
        """Validate one model entry; fill requested-but-missing factors from the canned list."""
        fallback = canned_variation(index, factors)
        if not isinstance(item, dict):
            return fallback
        try:
            spec = VariationSpec.model_validate(item)
        except ValidationError:
            return fallback
        updates = {
            FACTOR_FIELDS[factor]: fallback.value_for(factor)
            for factor in factors
            if not (spec.value_for(factor) or "").strip()
        }
        return spec.model_copy(update=updates) if updates else spec
