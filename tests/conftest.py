"""Shared test fixtures and configuration."""

import os
from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


from docs_datastore.config import IndexSettings
from docs_datastore.search.cache import IndexCache
from docs_datastore.search.service import SearchService


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop any DOCS_INDEX_* variables so settings always start from defaults."""
    for key in list(os.environ):
        if key.upper().startswith("DOCS_INDEX_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings() -> IndexSettings:
    return IndexSettings(_env_file=None)


@pytest.fixture
def index_file(tmp_path) -> Path:
    return tmp_path / "versions" / "1.0.0" / "search.json"


@pytest.fixture
def index_cache() -> IndexCache:
    """Fresh cache per test so no loaded index leaks between tests."""
    return IndexCache()


@pytest.fixture
def search_service(index_cache, settings) -> SearchService:
    return SearchService(cache=index_cache, settings=settings)
