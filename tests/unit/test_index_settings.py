"""Unit tests for environment-driven index settings."""

from pydantic import ValidationError
import pytest

from docs_datastore.config import DEFAULT_BLACKLISTED_CLASSES, DEFAULT_HEADING_TAGS, IndexSettings


pytestmark = pytest.mark.unit


def test_defaults(settings) -> None:
    assert settings.heading_tags == DEFAULT_HEADING_TAGS
    assert settings.blacklisted_classes == DEFAULT_BLACKLISTED_CLASSES
    assert "pre" in settings.blacklisted_block_tags
    assert settings.analyzer == "default"
    assert settings.content_boost == 2.0
    assert settings.default_limit == 0


def test_lists_accept_comma_separated_env(monkeypatch) -> None:
    monkeypatch.setenv("DOCS_INDEX_HEADING_TAGS", "h1, h2 ,h3")
    monkeypatch.setenv("DOCS_INDEX_BLACKLISTED_CLASSES", '["toc-container", "sidebar"]')

    settings = IndexSettings(_env_file=None)

    assert settings.heading_tags == ["h1", "h2", "h3"]
    assert settings.blacklisted_classes == ["toc-container", "sidebar"]


def test_scalars_from_env(monkeypatch) -> None:
    monkeypatch.setenv("DOCS_INDEX_ANALYZER", "PLAIN")
    monkeypatch.setenv("DOCS_INDEX_DEFAULT_LIMIT", "25")
    monkeypatch.setenv("DOCS_INDEX_LOG_JSON", "false")

    settings = IndexSettings(_env_file=None)

    assert settings.analyzer == "plain"
    assert settings.default_limit == 25
    assert settings.log_json is False


def test_env_file_is_read(tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("DOCS_INDEX_CONTENT_BOOST=3.5\n", encoding="utf-8")

    assert IndexSettings(_env_file=env_file).content_boost == 3.5


@pytest.mark.parametrize(
    "overrides",
    [
        {"analyzer": "klingon"},
        {"heading_tags": []},
        {"heading_tags": ""},
        {"content_boost": 0},
        {"default_limit": -1},
    ],
)
def test_invalid_values_are_rejected(overrides) -> None:
    with pytest.raises(ValidationError):
        IndexSettings(_env_file=None, **overrides)
