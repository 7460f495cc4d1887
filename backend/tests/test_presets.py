"""Tests for the creative-trend preset catalogs."""
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from studio.models.generation import GenerationMode
from studio.services.presets import PresetCatalog, PresetCatalogs, TrendPreset


class TestPresetCatalogs:
    """Tests for the shipped image and video catalogs."""

    def test_both_catalogs_are_populated(self, catalogs: PresetCatalogs) -> None:
        assert len(catalogs.image) == 6
        assert len(catalogs.video) == 6

    def test_for_mode_selects_catalog(self, catalogs: PresetCatalogs) -> None:
        assert catalogs.for_mode(GenerationMode.image) is catalogs.image
        assert catalogs.for_mode(GenerationMode.video) is catalogs.video

    def test_lookup_known_preset(self, catalogs: PresetCatalogs) -> None:
        preset = catalogs.image.lookup("reali-tea")
        assert preset is not None
        assert preset.name == "Reali-TEA"
        assert preset.prompt

    def test_lookup_unknown_preset_returns_none(self, catalogs: PresetCatalogs) -> None:
        assert catalogs.image.lookup("does-not-exist") is None

    def test_video_only_preset_not_in_image_catalog(self, catalogs: PresetCatalogs) -> None:
        assert catalogs.video.lookup("ugc-testimonial") is not None
        assert catalogs.image.lookup("ugc-testimonial") is None

    def test_every_preset_has_prompt_text(self, catalogs: PresetCatalogs) -> None:
        for catalog in (catalogs.image, catalogs.video):
            for preset in catalog.presets():
                assert preset.prompt.strip(), preset.id


class TestPresetCatalogFile:
    """Tests for loading a catalog from disk."""

    def test_presets_keep_file_order(self, tmp_path: Path) -> None:
        path = tmp_path / "image.json"
        path.write_text(
            json.dumps(
                {
                    "presets": [
                        {"id": "b", "name": "B", "description": "", "prompt": "pb"},
                        {"id": "a", "name": "A", "description": "", "prompt": "pa"},
                    ]
                }
            )
        )
        catalog = PresetCatalog.from_file(path)
        assert [p.id for p in catalog.presets()] == ["b", "a"]

    def test_malformed_catalog_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "image.json"
        path.write_text(json.dumps({"presets": [{"id": "x"}]}))
        with pytest.raises(ValidationError):
            PresetCatalog.from_file(path)

    def test_missing_catalog_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            PresetCatalogs.load(tmp_path)


def test_catalog_from_models() -> None:
    catalog = PresetCatalog([TrendPreset(id="x", name="X", description="d", prompt="p")])
    assert len(catalog) == 1
    assert catalog.lookup("x").prompt == "p"  # type: ignore[union-attr]
