"""Unit tests for building and persisting a version's search index."""

from __future__ import annotations

import pytest

from docs_datastore.search.indexer import DocumentIndex, IndexNotReadyError
from docs_datastore.search.sections import InvalidInputError
from tests.fixtures.document_trees import database_document, guide_document, hello_document


pytestmark = pytest.mark.unit


@pytest.fixture
def document_index(index_file, settings) -> DocumentIndex:
    return DocumentIndex(index_file, settings=settings)


def test_search_before_build_raises(document_index) -> None:
    assert document_index.is_ready is False

    with pytest.raises(IndexNotReadyError):
        document_index.search("hello")


def test_add_doc_rejects_invalid_content(document_index) -> None:
    with pytest.raises(InvalidInputError):
        document_index.add_doc({"children": []}, "/hello")

    assert document_index.docs == {}


def test_build_indexes_every_entry(document_index) -> None:
    document_index.add_doc(hello_document(), "/hello")
    document_index.add_doc(guide_document(), "/guide")

    index = document_index.build()

    assert index.doc_count == sum(section.entry_count() for section in document_index.docs.values())
    assert document_index.is_ready


def test_build_is_deterministic(document_index) -> None:
    document_index.add_doc(guide_document(), "/guide")

    document_index.build()
    first = document_index.search("cache driver")
    document_index.build()

    assert document_index.search("cache driver") == first


@pytest.mark.asyncio
async def test_save_then_load_answers_the_same_queries(document_index, index_file, settings) -> None:
    document_index.add_doc(hello_document(), "/hello")
    document_index.add_doc(database_document(), "/db")

    path = await document_index.save()
    reloaded = DocumentIndex(index_file, settings=settings)

    assert path == index_file
    assert await reloaded.load() is True
    assert reloaded.docs.keys() == document_index.docs.keys()
    for term in ("section", "database", "hello world"):
        assert reloaded.search(term) == document_index.search(term)


@pytest.mark.asyncio
async def test_load_missing_artifact_returns_false(document_index) -> None:
    assert await document_index.load() is False
    assert document_index.is_ready is False


@pytest.mark.asyncio
async def test_save_includes_docs_added_after_previous_save(document_index, index_file, settings) -> None:
    document_index.add_doc(hello_document(), "/hello")
    await document_index.save()
    document_index.add_doc(database_document(), "/db")
    await document_index.save()

    reloaded = DocumentIndex(index_file, settings=settings)
    await reloaded.load()

    assert [hit.url for hit in reloaded.search("database")] == ["/db#database"]


def test_search_limit_overrides_default(document_index) -> None:
    document_index.add_doc(guide_document(), "/guide")
    document_index.build()

    [hit] = document_index.search("cache", limit=2)

    assert len(hit.body) == 2
