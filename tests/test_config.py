from __future__ import annotations

import pytest

from pagetext.engine.config import EngineConfig, LayoutConfig, PageRange


def test_layout_config_defaults_are_valid() -> None:
    config = LayoutConfig.default()

    assert config.validate()
    assert config.granularity == "sentence"
    assert config.sentence_scope == "paragraph"
    assert config.filter_watermarks and config.watermark_rotation_filter


@pytest.mark.parametrize("overrides", [
    {"granularity": "word"},
    {"sentence_scope": "page"},
    {"watermark_min_rotation": 90, "watermark_max_rotation": 45},
    {"vertical_mode_ratio": 0},
    {"column_buckets": 0},
    {"baseline_percentile": 150},
    {"indent_ratio": -1},
])
def test_layout_config_rejects_invalid_values(overrides) -> None:
    assert not LayoutConfig(**overrides).validate()


def test_layout_config_round_trips_and_ignores_unknown_keys() -> None:
    config = LayoutConfig.from_dict({"granularity": "paragraph", "colour": "blue"})

    assert config.granularity == "paragraph"
    assert LayoutConfig.from_dict(config.to_dict()) == config


def test_layout_config_is_immutable() -> None:
    config = LayoutConfig()
    with pytest.raises(AttributeError):
        config.granularity = "paragraph"


def test_engine_config_validation() -> None:
    assert EngineConfig.default().validate()
    assert not EngineConfig(timeout_seconds=10).validate()
    assert not EngineConfig(max_file_size_mb=0).validate()
    assert not EngineConfig(doc_id_length=4).validate()


def test_page_range_resolution() -> None:
    assert PageRange().to_page_numbers(3) == [1, 2, 3]
    assert PageRange(start=2, end=5).to_page_numbers(10) == [2, 3, 4, 5]
    assert PageRange(start=2, end=50).to_page_numbers(4) == [2, 3, 4]
    assert PageRange(start=5).to_page_numbers(3) == []
    assert PageRange.single_page(2).to_page_numbers(3) == [2]


def test_page_range_rejects_invalid_bounds() -> None:
    with pytest.raises(ValueError):
        PageRange(start=0)
    with pytest.raises(ValueError):
        PageRange(start=3, end=2)
