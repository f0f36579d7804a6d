import logging

import pytest

from textmarks.engine.config import EngineConfig, ExtractionConfig, PageRange


def test_extraction_defaults() -> None:
    config = ExtractionConfig.default()
    assert config.line_break_ratio == 0.5
    assert config.word_gap_ratio == 0.1
    assert config.expand_ligatures
    assert config.include_invisible
    assert config.include_separator_marks
    assert config.unmapped_placeholder == "\ufffd"
    assert config.validate()


@pytest.mark.parametrize("overrides", [
    {'line_break_ratio': 0},
    {'word_gap_ratio': -0.1},
    {'max_form_depth': -1},
    {'log_level': 'LOUD'},
])
def test_extraction_config_rejects(overrides) -> None:
    assert not ExtractionConfig(**overrides).validate()


def test_extraction_dict_round_trip() -> None:
    config = ExtractionConfig(word_gap_ratio=0.25, include_separator_marks=True, log_level="DEBUG")
    assert ExtractionConfig.from_dict(config.to_dict()) == config


def test_unknown_keys_are_ignored_with_warning(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        config = ExtractionConfig.from_dict({'expand_ligatures': False, 'colour': 'blue'})
    assert config.expand_ligatures is False
    assert "colour" in caplog.text


def test_report_level() -> None:
    assert ExtractionConfig(log_level="warning").report_level() == logging.WARNING
    assert ExtractionConfig(log_level="DEBUG").report_level() == logging.DEBUG


def test_engine_config_builds_extraction_config() -> None:
    config = EngineConfig(text_options={'include_invisible': False})
    assert config.validate()
    assert config.extraction_config().include_invisible is False
    assert EngineConfig().extraction_config() == ExtractionConfig()


@pytest.mark.parametrize("overrides", [
    {'max_cache_pages': -1},
    {'max_file_size_mb': 0},
    {'log_level': 'chatty'},
    {'text_options': {'line_break_ratio': -1}},
])
def test_engine_config_rejects(overrides) -> None:
    assert not EngineConfig(**overrides).validate()


def test_engine_dict_round_trip() -> None:
    config = EngineConfig(strict_mode=True, max_cache_pages=3, text_options={'word_gap_ratio': 0.2})
    assert EngineConfig.from_dict(config.to_dict()) == config


def test_page_range_clamps_to_document() -> None:
    assert PageRange(start=2).to_page_numbers(4) == [2, 3, 4]
    assert PageRange(start=2, end=10).to_page_numbers(3) == [2, 3]
    assert PageRange(start=9).to_page_numbers(3) == [3]
    assert PageRange.all_pages().to_page_numbers(0) == []
    assert PageRange.single_page(2).to_page_numbers(5) == [2]


def test_page_range_validation() -> None:
    assert PageRange(1, 3).validate(3)
    assert not PageRange(4).validate(3)
    assert not PageRange(1, 4).validate(3)
    with pytest.raises(ValueError):
        PageRange(0)
    with pytest.raises(ValueError):
        PageRange(3, 2)
