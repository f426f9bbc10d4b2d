"""Unit tests for regrouping flat matches into highlighted section hits."""

from __future__ import annotations

import pytest

from docs_datastore.search.engine import group_matches, run_query
from docs_datastore.search.models import Section
from docs_datastore.search.sections import SectionExtractor
from docs_datastore.search.storage import IndexArtifact
from docs_datastore.search.term_index import TermMatch, build_term_index
from tests.fixtures.document_trees import database_document, guide_document, hello_document


pytestmark = pytest.mark.unit


def _artifact(settings, *documents) -> IndexArtifact:
    docs: dict[str, Section] = {}
    extractor = SectionExtractor(settings)
    for content, permalink in documents:
        extractor.add_doc(content, permalink, docs)
    return IndexArtifact(docs=docs, index=build_term_index(docs))


def _pairs(result) -> list[tuple[str, str]]:
    return [(mark.type, mark.text) for mark in result.marks]


def test_title_and_body_matches_nest_under_one_hit(settings) -> None:
    artifact = _artifact(settings, (database_document(), "/hello"))

    hits = run_query(artifact, "Database")

    assert len(hits) == 1
    [hit] = hits
    assert hit.url == "/hello#database"
    assert _pairs(hit.title) == [("mark", "Database")]
    assert [_pairs(node) for node in hit.body] == [[("mark", "Database"), ("raw", " content")]]
    assert hit.score == max(hit.title.score, *(node.score for node in hit.body))


def test_unmatched_title_is_returned_raw_with_zero_score(settings) -> None:
    artifact = _artifact(settings, (hello_document(), "/hello"))

    [hit] = run_query(artifact, "paragraph")

    assert hit.url == "/hello"
    assert hit.title.score == 0.0
    assert _pairs(hit.title) == [("raw", "Hello world")]
    assert [node.text for node in hit.body] == ["This is the first paragraph"]
    assert hit.body[0].matched == ["paragraph"]


def test_body_nodes_follow_document_order(settings) -> None:
    artifact = _artifact(settings, (guide_document(), "/guide"))

    [hit] = run_query(artifact, "cache")

    assert hit.url == "/guide#configuration"
    assert [node.text for node in hit.body] == ["memory cache", "disk cache", "cache cache driver"]
    assert hit.body[2].matched == ["cache", "cache"]
    assert hit.score == max(node.score for node in hit.body)


def test_limit_caps_flat_matches(settings) -> None:
    artifact = _artifact(settings, (guide_document(), "/guide"))

    [hit] = run_query(artifact, "cache", limit=1)

    assert len(hit.body) == 1
    assert hit.body[0].text in {"memory cache", "disk cache", "cache cache driver"}
    assert run_query(artifact, "cache", limit=50) == run_query(artifact, "cache")


def test_hits_span_multiple_documents(settings) -> None:
    artifact = _artifact(settings, (guide_document(), "/guide"), (database_document(), "/db"))

    hits = run_query(artifact, "database")

    assert {hit.url for hit in hits} == {"/guide#database-drivers", "/db#database"}
    assert len({hit.url for hit in hits}) == len(hits)


@pytest.mark.parametrize("term", ["", "   ", "nonexistent"])
def test_blank_or_unknown_terms_return_no_hits(settings, term) -> None:
    artifact = _artifact(settings, (hello_document(), "/hello"))

    assert run_query(artifact, term) == []


def test_group_score_is_the_best_match() -> None:
    docs = {"/hello": Section(url="/hello", title="Hello world", nodes=["hello again"])}
    matches = [
        TermMatch(ref="/hello@lvl1", score=3.0, metadata={"hello": {"content": {"position": [[0, 5]]}}}),
        TermMatch(ref="/hello@lvl0", score=1.0, metadata={"hello": {"content": {"position": [[0, 5]]}}}),
    ]

    [hit] = group_matches(matches, docs)

    assert hit.score == 3.0
    assert hit.title.score == 1.0
    assert hit.body[0].score == 3.0


def test_matches_for_missing_sections_are_dropped() -> None:
    docs = {"/hello": Section(url="/hello", title="Hello", nodes=["body"])}
    matches = [
        TermMatch(ref="/missing@lvl0", score=5.0),
        TermMatch(ref="/hello@lvl9", score=4.0),
        TermMatch(ref="not-a-ref", score=3.0),
        TermMatch(ref="/hello@lvl1", score=1.0),
    ]

    hits = group_matches(matches, docs)

    assert [hit.url for hit in hits] == ["/hello"]
    assert [node.text for node in hits[0].body] == ["body"]
