"""Creative-trend preset catalogs for the image and video engines."""
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel

from studio.core.logging import setup_logging
from studio.models.generation import GenerationMode

logger = setup_logging("presets")

IMAGE_CATALOG_FILENAME = "image.json"
VIDEO_CATALOG_FILENAME = "video.json"


class TrendPreset(BaseModel):
    """One named creative trend and the prompt fragment it contributes."""

    id: str
    name: str
    description: str
    prompt: str


class _CatalogFile(BaseModel):
    presets: list[TrendPreset]


class PresetCatalog:
    """Read-only id -> preset mapping, kept in file order."""

    def __init__(self, presets: list[TrendPreset]) -> None:
        self._presets: dict[str, TrendPreset] = {p.id: p for p in presets}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PresetCatalog":
        data = _CatalogFile.model_validate_json(Path(path).read_text(encoding="utf-8"))
        logger.info("Loaded %d presets from %s", len(data.presets), path)
        return cls(data.presets)

    def lookup(self, preset_id: str) -> Optional[TrendPreset]:
        return self._presets.get(preset_id)

    def presets(self) -> list[TrendPreset]:
        return list(self._presets.values())

    def __len__(self) -> int:
        return len(self._presets)


class PresetCatalogs:
    """The image and the video catalog, loaded together at startup."""

    def __init__(self, image: PresetCatalog, video: PresetCatalog) -> None:
        self.image = image
        self.video = video

    @classmethod
    def load(cls, presets_dir: Union[str, Path]) -> "PresetCatalogs":
        base = Path(presets_dir)
        return cls(
            image=PresetCatalog.from_file(base / IMAGE_CATALOG_FILENAME),
            video=PresetCatalog.from_file(base / VIDEO_CATALOG_FILENAME),
        )

    def for_mode(self, mode: GenerationMode) -> PresetCatalog:
        return self.image if mode is GenerationMode.image else self.video
