"""
Tests for the index handle (meiliclient.core.index.Index).

Covers index lifecycle, document writes (single and batched), document
reads, search and the settings endpoints.
"""

from dataclasses import dataclass

import httpx
import pytest

from conftest import body_of, enqueued
from meiliclient import ApiError, SearchQuery, Settings, TaskFailedError
from meiliclient.core.index import chunks, serialize_documents

INDEX_BODY = {
    "uid": "movies",
    "primaryKey": "id",
    "createdAt": "2024-01-01T00:00:00Z",
    "updatedAt": "2024-01-02T00:00:00Z",
}


@pytest.fixture
def movies(client):
    return client.index("movies")


@dataclass
class Movie:
    id: int
    title: str


# =============================================================================
# Lifecycle
# =============================================================================

class TestIndexLifecycle:

    def test_handle_does_no_io(self, fake, client):
        index = client.index("movies")
        assert index.uid == "movies"
        assert index.primary_key is None
        assert fake.requests == []

    def test_fetch_info(self, fake, movies):
        fake.route("GET", "/indexes/movies", INDEX_BODY)
        assert movies.fetch_info() is movies
        assert movies.primary_key == "id"
        assert movies.updated_at.day == 2

    def test_update_primary_key(self, fake, movies):
        fake.route("PATCH", "/indexes/movies", enqueued(3, "indexUpdate"), status=202)
        info = movies.update("movie_id")
        assert info.task_uid == 3
        assert body_of(fake.last) == {"primaryKey": "movie_id"}

    def test_update_and_wait_refreshes(self, fake, movies):
        fake.route("PATCH", "/indexes/movies", enqueued(3, "indexUpdate"), status=202)
        fake.route("GET", "/tasks/3", fake.task(3, type_="indexUpdate"))
        fake.route("GET", "/indexes/movies", {**INDEX_BODY, "primaryKey": "movie_id"})
        assert movies.update_and_wait("movie_id").primary_key == "movie_id"

    def test_delete(self, fake, movies):
        fake.route("DELETE", "/indexes/movies", enqueued(4, "indexDeletion"), status=202)
        assert movies.delete().type == "indexDeletion"

    def test_get_stats(self, fake, movies):
        fake.route("GET", "/indexes/movies/stats", {"numberOfDocuments": 10, "isIndexing": True,
                                                    "fieldDistribution": {"id": 10}})
        stats = movies.get_stats()
        assert stats.number_of_documents == 10
        assert stats.is_indexing


class TestDeleteIfExists:

    def test_existing_index(self, fake, movies):
        fake.route("DELETE", "/indexes/movies", enqueued(4, "indexDeletion"), status=202)
        fake.route("GET", "/tasks/4", fake.task(4, type_="indexDeletion"))
        assert movies.delete_if_exists() is True

    def test_missing_index_rejected_synchronously(self, fake, movies):
        fake.error("DELETE", "/indexes/movies", 404, "index_not_found")
        assert movies.delete_if_exists() is False

    def test_missing_index_reported_by_task(self, fake, movies):
        fake.route("DELETE", "/indexes/movies", enqueued(4, "indexDeletion"), status=202)
        fake.route("GET", "/tasks/4", fake.task(4, status="failed", type_="indexDeletion",
                                                error={"code": "index_not_found"}))
        assert movies.delete_if_exists() is False

    def test_other_failure_raises(self, fake, movies):
        fake.route("DELETE", "/indexes/movies", enqueued(4, "indexDeletion"), status=202)
        fake.route("GET", "/tasks/4", fake.task(4, status="failed", type_="indexDeletion",
                                                error={"code": "internal"}))
        with pytest.raises(TaskFailedError):
            movies.delete_if_exists()

    def test_other_api_error_propagates(self, fake, movies):
        fake.error("DELETE", "/indexes/movies", 403, "invalid_api_key")
        with pytest.raises(ApiError):
            movies.delete_if_exists()


# =============================================================================
# Documents
# =============================================================================

class TestDocuments:

    def test_add_documents(self, fake, movies):
        fake.route("POST", "/indexes/movies/documents", enqueued(1), status=202)
        info = movies.add_documents([{"id": 1, "title": "Carol"}])
        assert info.task_uid == 1
        assert body_of(fake.last) == [{"id": 1, "title": "Carol"}]
        assert "primaryKey" not in fake.last.url.params

    def test_add_documents_with_primary_key(self, fake, movies):
        fake.route("POST", "/indexes/movies/documents", enqueued(1), status=202)
        movies.add_documents([{"movie_id": 1}], primary_key="movie_id")
        assert fake.last.url.params["primaryKey"] == "movie_id"

    def test_update_documents_uses_put(self, fake, movies):
        fake.route("PUT", "/indexes/movies/documents", enqueued(2), status=202)
        movies.update_documents([Movie(1, "Carol")])
        assert body_of(fake.last) == [{"id": 1, "title": "Carol"}]

    def test_add_documents_in_batches(self, fake, movies):
        fake.route("POST", "/indexes/movies/documents",
                   sequence=[enqueued(1), enqueued(2), enqueued(3)], status=202)
        docs = [{"id": i} for i in range(5)]
        infos = movies.add_documents_in_batches(docs, batch_size=2, primary_key="id")
        assert [i.task_uid for i in infos] == [1, 2, 3]
        sent = fake.calls("POST", "/indexes/movies/documents")
        assert [len(body_of(r)) for r in sent] == [2, 2, 1]
        assert all(r.url.params["primaryKey"] == "id" for r in sent)

    def test_batches_default_to_config_batch_size(self, fake, movies):
        fake.route("PUT", "/indexes/movies/documents", enqueued(1), status=202)
        infos = movies.update_documents_in_batches([{"id": i} for i in range(4)])
        assert len(infos) == 2

    @pytest.mark.parametrize("size", [0, -1])
    def test_batches_reject_non_positive_size(self, fake, movies, size):
        with pytest.raises(ValueError):
            movies.add_documents_in_batches([{"id": i} for i in range(4)], batch_size=size)
        assert fake.requests == []

    def test_failed_batch_keeps_enqueued_tasks(self, fake, movies):
        calls = []

        def second_batch_fails(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(202, json=enqueued(1))
            return httpx.Response(413, json={"message": "too large",
                                             "code": "payload_too_large"})

        fake.route("POST", "/indexes/movies/documents", handler=second_batch_fails)
        with pytest.raises(ApiError) as excinfo:
            movies.add_documents_in_batches([{"id": i} for i in range(4)], batch_size=2)
        assert [info.task_uid for info in excinfo.value.enqueued_tasks] == [1]

    def test_errors_carry_no_enqueued_tasks_by_default(self, fake, movies):
        fake.error("POST", "/indexes/movies/documents", 400, "missing_document_id")
        with pytest.raises(ApiError) as excinfo:
            movies.add_documents([{"title": "Carol"}])
        assert excinfo.value.enqueued_tasks == ()

    def test_get_document(self, fake, movies):
        fake.route("GET", "/indexes/movies/documents/25684", {"id": 25684, "title": "Carol"})
        doc = movies.get_document(25684, fields=["id", "title"])
        assert doc["title"] == "Carol"
        assert fake.last.url.params["fields"] == "id,title"

    def test_get_documents(self, fake, movies):
        from meiliclient import DocumentQuery

        fake.route("GET", "/indexes/movies/documents",
                   {"results": [{"id": 1}], "offset": 10, "limit": 1, "total": 42})
        page = movies.get_documents(DocumentQuery(offset=10, limit=1))
        assert page.total == 42
        assert fake.last.url.params["offset"] == "10"

    def test_delete_documents(self, fake, movies):
        fake.route("POST", "/indexes/movies/documents/delete-batch", enqueued(5), status=202)
        movies.delete_documents([1, "b"])
        assert body_of(fake.last) == ["1", "b"]

    def test_delete_document_and_all(self, fake, movies):
        fake.route("DELETE", "/indexes/movies/documents/1", enqueued(6), status=202)
        fake.route("DELETE", "/indexes/movies/documents", enqueued(7), status=202)
        assert movies.delete_document(1).task_uid == 6
        assert movies.delete_all_documents().task_uid == 7


class TestDocumentHelpers:

    def test_serialize_documents(self):
        class WithToDict:
            def to_dict(self):
                return {"id": 3}

        out = serialize_documents([{"id": 1}, Movie(2, "Heat"), WithToDict()])
        assert out == [{"id": 1}, {"id": 2, "title": "Heat"}, {"id": 3}]

    def test_serialize_rejects_unknown_type(self):
        with pytest.raises(TypeError):
            serialize_documents([42])

    def test_chunks(self):
        assert list(chunks(range(5), 2)) == [[0, 1], [2, 3], [4]]
        assert list(chunks([], 3)) == []


# =============================================================================
# Search
# =============================================================================

SEARCH_BODY = {
    "hits": [{"id": 1, "title": "Carol"}],
    "query": "carol",
    "processingTimeMs": 2,
    "limit": 20,
    "offset": 0,
    "estimatedTotalHits": 1,
}


class TestSearch:

    def test_basic_search(self, fake, movies):
        fake.route("POST", "/indexes/movies/search", SEARCH_BODY)
        result = movies.search("carol")
        assert result.hits == [{"id": 1, "title": "Carol"}]
        assert result.processing_time_ms == 2
        assert body_of(fake.last) == {"q": "carol"}

    def test_search_with_parameters(self, fake, movies):
        fake.route("POST", "/indexes/movies/search", SEARCH_BODY)
        movies.search("carol", SearchQuery(limit=5, filter="genre = drama",
                                           sort=["year:desc"], facets=["genre"]))
        assert body_of(fake.last) == {"q": "carol", "limit": 5, "filter": "genre = drama",
                                      "sort": ["year:desc"], "facets": ["genre"]}

    def test_query_argument_wins_and_caller_query_untouched(self, fake, movies):
        fake.route("POST", "/indexes/movies/search", SEARCH_BODY)
        params = SearchQuery(q="ignored", limit=1)
        movies.search("carol", params)
        assert body_of(fake.last)["q"] == "carol"
        assert params.q == "ignored"

    def test_placeholder_search(self, fake, movies):
        fake.route("POST", "/indexes/movies/search", {**SEARCH_BODY, "query": ""})
        movies.search(None)
        assert body_of(fake.last) == {}

    def test_search_missing_index(self, fake, movies):
        from meiliclient import IndexNotFoundError

        fake.error("POST", "/indexes/movies/search", 404, "index_not_found")
        with pytest.raises(IndexNotFoundError):
            movies.search("carol")


# =============================================================================
# Tasks of one index
# =============================================================================

class TestIndexTasks:

    def test_get_tasks_is_scoped(self, fake, movies):
        fake.route("GET", "/tasks", {"results": []})
        movies.get_tasks(statuses=["failed"])
        assert fake.last.url.params["indexUids"] == "movies"

    def test_get_task(self, fake, movies):
        fake.route("GET", "/tasks/1", fake.task(1))
        assert movies.get_task(1).index_uid == "movies"


# =============================================================================
# Settings
# =============================================================================

SUB_SETTINGS = [
    ("displayed_attributes", "displayed-attributes", ["title"]),
    ("distinct_attribute", "distinct-attribute", "title"),
    ("filterable_attributes", "filterable-attributes", ["genre"]),
    ("ranking_rules", "ranking-rules", ["words", "typo"]),
    ("searchable_attributes", "searchable-attributes", ["title"]),
    ("sortable_attributes", "sortable-attributes", ["year"]),
    ("stop_words", "stop-words", ["the"]),
    ("synonyms", "synonyms", {"logan": ["wolverine"]}),
]


class TestSettings:

    def test_get_settings(self, fake, movies):
        fake.route("GET", "/indexes/movies/settings", {"rankingRules": ["words"], "stopWords": []})
        settings = movies.get_settings()
        assert settings.ranking_rules == ["words"]
        assert settings.stop_words == []

    def test_update_settings_sends_only_set_fields(self, fake, movies):
        fake.route("PATCH", "/indexes/movies/settings", enqueued(8, "settingsUpdate"), status=202)
        movies.update_settings(Settings(filterable_attributes=["genre"]))
        assert body_of(fake.last) == {"filterableAttributes": ["genre"]}

    def test_reset_settings(self, fake, movies):
        fake.route("DELETE", "/indexes/movies/settings", enqueued(9, "settingsUpdate"), status=202)
        assert movies.reset_settings().task_uid == 9

    @pytest.mark.parametrize("name, path, value", SUB_SETTINGS)
    def test_sub_setting_verbs(self, fake, movies, name, path, value):
        url = f"/indexes/movies/settings/{path}"
        fake.route("GET", url, value)
        fake.route("PUT", url, enqueued(10, "settingsUpdate"), status=202)
        fake.route("DELETE", url, enqueued(11, "settingsUpdate"), status=202)

        assert getattr(movies, f"get_{name}")() == value
        assert getattr(movies, f"update_{name}")(value).task_uid == 10
        assert body_of(fake.last) == value
        assert getattr(movies, f"reset_{name}")().task_uid == 11
