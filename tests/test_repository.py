"""Unit tests for FirestoreRepository."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest
from google.api_core import exceptions as gexc
from pydantic import BaseModel

from firestore_connector import FirestoreRepository, FirestoreSettings
from firestore_connector.exceptions import (
    DocumentNotFoundError,
    FirestoreConnectionError,
    FirestoreStoreError,
    InvalidFilterError,
    InvalidOperatorError,
)
from firestore_connector.query_builder import FirestoreQueryBuilder


class Person(BaseModel):
    """Sample record model."""

    id: str
    name: str
    ref: UUID


class TestFindDispatch:
    """Tests for find() routing."""

    @pytest.mark.asyncio
    async def test_id_lookup_bypasses_query_builder(self, fake_client, people):
        builder = MagicMock(spec=FirestoreQueryBuilder)
        repository = FirestoreRepository(fake_client, query_builder=builder)

        result = await repository.find("people", {"where": {"id": "ada"}})

        assert result == [
            {"id": "ada", "name": "Ada", "age": 36, "status": "active", "region": "EU"}
        ]
        builder.build.assert_not_called()
        builder.build_where.assert_not_called()
        assert fake_client.queries == []

    @pytest.mark.asyncio
    async def test_id_lookup_ignores_other_conditions(self, repository, people):
        result = await repository.find(
            "people", {"where": {"id": "ada", "status": "inactive"}}
        )
        assert [r["id"] for r in result] == ["ada"]

    @pytest.mark.asyncio
    async def test_filtered_path(self, repository, people):
        result = await repository.find(
            "people", {"where": {"region": "US"}, "order": "age ASC"}
        )
        assert [r["id"] for r in result] == ["bob", "dee"]

    @pytest.mark.asyncio
    async def test_no_filter_scans_collection(self, repository, people):
        assert len(await repository.find("people")) == 4
        assert len(await repository.find("people", {})) == 4

    @pytest.mark.asyncio
    async def test_unfiltered_path_does_not_compile(self, fake_client, people):
        builder = MagicMock(spec=FirestoreQueryBuilder)
        repository = FirestoreRepository(fake_client, query_builder=builder)
        await repository.find("people", {"include": "friends"})
        builder.build.assert_not_called()

    @pytest.mark.asyncio
    async def test_id_in_condition(self, repository, people):
        result = await repository.find(
            "people", {"where": {"id": {"in": ["ada", "nobody", "dee"]}}}
        )
        assert [r["id"] for r in result] == ["ada", "dee"]

    @pytest.mark.asyncio
    async def test_id_eq_condition(self, repository, people):
        result = await repository.find("people", {"where": {"id": {"eq": "bob"}}})
        assert [r["id"] for r in result] == ["bob"]

    @pytest.mark.asyncio
    async def test_id_range_condition_rejected(self, repository, people):
        with pytest.raises(InvalidFilterError, match="not supported"):
            await repository.find("people", {"where": {"id": {"gt": "a"}}})

    @pytest.mark.asyncio
    async def test_id_unknown_operator(self, repository, people):
        with pytest.raises(InvalidOperatorError):
            await repository.find("people", {"where": {"id": {"inq": ["a"]}}})

    @pytest.mark.asyncio
    async def test_invalid_operator_does_not_query(self, repository, fake_client, people):
        with pytest.raises(InvalidOperatorError):
            await repository.find("people", {"where": {"age": {"between": [1, 2]}}})
        assert fake_client.queries == []


class TestReads:
    @pytest.mark.asyncio
    async def test_find_by_id_missing_returns_empty(self, repository, people):
        assert await repository.find_by_id("people", "zed") == []

    @pytest.mark.asyncio
    async def test_store_id_overwrites_payload_id(self, repository, fake_client):
        fake_client.seed("things", {"real": {"id": "stale", "v": 1}})
        assert await repository.find_by_id("things", "real") == [{"id": "real", "v": 1}]

    @pytest.mark.asyncio
    async def test_find_all_empty_collection(self, repository):
        assert await repository.find_all("nothing") == []

    @pytest.mark.asyncio
    async def test_find_filtered_projection(self, repository, people):
        result = await repository.find_filtered(
            "people", {"where": {"name": "Cyd"}, "fields": {"age": True}}
        )
        assert result == [{"id": "cyd", "age": 65}]

    @pytest.mark.asyncio
    async def test_custom_id_field(self, fake_client, people):
        repository = FirestoreRepository(
            fake_client, settings=FirestoreSettings(id_field="key")
        )
        result = await repository.find("people", {"where": {"key": "bob"}})
        assert result[0]["key"] == "bob"
        assert "id" not in result[0]

    @pytest.mark.asyncio
    async def test_exists(self, repository, people):
        assert await repository.exists("people", "ada") is True
        assert await repository.exists("people", "zed") is False

    @pytest.mark.asyncio
    async def test_exists_requires_literal_id(self, repository):
        with pytest.raises(InvalidFilterError):
            await repository.exists("people", None)


class TestCount:
    @pytest.mark.asyncio
    async def test_count_all(self, repository, people):
        assert await repository.count("people") == 4
        assert await repository.count("people", {}) == 4

    @pytest.mark.asyncio
    async def test_count_honours_every_field(self, repository, people):
        assert await repository.count("people", {"status": "active", "region": "EU"}) == 1

    @pytest.mark.asyncio
    async def test_count_with_operators(self, repository, people):
        assert await repository.count("people", {"age": {"gte": 18, "lt": 65}}) == 2

    @pytest.mark.asyncio
    async def test_count_first_field_only_flag(self, fake_client, people):
        repository = FirestoreRepository(
            fake_client, settings=FirestoreSettings(count_first_field_only=True)
        )
        count = await repository.count("people", {"status": "active", "region": "EU"})
        assert count == 3

    @pytest.mark.asyncio
    async def test_count_by_id(self, repository, people):
        assert await repository.count("people", {"id": "ada"}) == 1
        assert await repository.count("people", {"id": "zed"}) == 0

    @pytest.mark.asyncio
    async def test_count_by_id_honours_other_fields(self, repository, people):
        assert await repository.count("people", {"id": "ada", "status": "inactive"}) == 0
        assert await repository.count("people", {"id": "ada", "status": "active"}) == 1

    @pytest.mark.asyncio
    async def test_count_by_id_operators(self, repository, people):
        where = {"id": {"in": ["ada", "bob", "cyd", "zed"]}, "region": "EU"}
        assert await repository.count("people", where) == 2
        assert await repository.count("people", {"id": {"eq": "bob"}}) == 1
        assert await repository.count("people", {"id": {"in": []}}) == 0

    @pytest.mark.asyncio
    async def test_count_by_id_is_one_aggregation(self, repository, people):
        await repository.count("people", {"id": "ada", "status": "active"})

        assert len(people.queries) == 1
        status, document = people.queries[0].filters
        assert status == ("status", "==", "active")
        assert document[:2] == ("__name__", "==")
        assert document[2].id == "ada"


class TestCreate:
    @pytest.mark.asyncio
    async def test_round_trip(self, repository):
        record = {"id": "r1", "name": "Round", "tags": ["a", "b"]}
        new_id = await repository.create("items", record)

        assert new_id == "r1"
        assert await repository.find_by_id("items", new_id) == [record]

    @pytest.mark.asyncio
    async def test_generates_id_when_missing(self, repository, fake_client):
        new_id = await repository.create("items", {"name": "Anon"})

        assert new_id
        assert fake_client.documents("items") == {new_id: {"name": "Anon"}}
        assert await repository.find_by_id("items", new_id) == [
            {"name": "Anon", "id": new_id}
        ]

    @pytest.mark.asyncio
    async def test_single_write(self, repository, fake_client):
        await repository.create("items", {"id": "one"})
        assert fake_client.calls == [("set", "items/one")]

    @pytest.mark.asyncio
    async def test_pydantic_record(self, repository, fake_client):
        ref = UUID("12345678-1234-5678-1234-567812345678")
        new_id = await repository.create("people", Person(id="p1", name="P", ref=ref))
        assert new_id == "p1"
        assert fake_client.documents("people")["p1"]["ref"] == str(ref)

    @pytest.mark.asyncio
    async def test_non_mapping_record(self, repository):
        from firestore_connector.exceptions import FirestorePersistenceError

        with pytest.raises(FirestorePersistenceError):
            await repository.create("items", ["not", "a", "record"])


class TestMergeVersusOverwrite:
    """update/update_all/replace_by_id merge; update_attributes overwrites."""

    @pytest.fixture
    def doc(self, fake_client):
        fake_client.seed("docs", {"d1": {"a": 1, "b": 2}})
        return fake_client

    @pytest.mark.asyncio
    async def test_update_merges(self, repository, doc):
        assert await repository.update("docs", {"id": "d1"}, {"a": 9}) == 1
        assert doc.documents("docs")["d1"] == {"a": 9, "b": 2}

    @pytest.mark.asyncio
    async def test_update_all_merges(self, repository, doc):
        await repository.update_all("docs", {"id": "d1"}, {"a": 9})
        assert doc.documents("docs")["d1"] == {"a": 9, "b": 2}

    @pytest.mark.asyncio
    async def test_replace_by_id_merges(self, repository, doc):
        await repository.replace_by_id("docs", "d1", {"a": 9})
        assert doc.documents("docs")["d1"] == {"a": 9, "b": 2}

    @pytest.mark.asyncio
    async def test_update_attributes_overwrites(self, repository, doc):
        await repository.update_attributes("docs", "d1", {"a": 9})
        assert doc.documents("docs")["d1"] == {"a": 9}

    @pytest.mark.asyncio
    async def test_update_by_id_eq_merges(self, repository, doc):
        assert await repository.update("docs", {"id": {"eq": "d1"}}, {"a": 9}) == 1
        assert doc.documents("docs")["d1"] == {"a": 9, "b": 2}

    @pytest.mark.asyncio
    async def test_update_all_by_id_in_merges(self, repository, doc):
        doc.seed("docs", {"d2": {"a": 2, "b": 3}, "d3": {"a": 3}})

        updated = await repository.update_all(
            "docs", {"id": {"in": ["d1", "d2", "d1"]}}, {"a": 0}
        )

        assert updated == 2
        assert doc.documents("docs") == {
            "d1": {"a": 0, "b": 2},
            "d2": {"a": 0, "b": 3},
            "d3": {"a": 3},
        }

    @pytest.mark.asyncio
    async def test_update_all_by_id_in_missing_writes_nothing(self, repository, doc):
        with pytest.raises(DocumentNotFoundError):
            await repository.update_all("docs", {"id": {"in": ["d1", "nope"]}}, {"a": 0})
        assert doc.documents("docs")["d1"] == {"a": 1, "b": 2}
        assert ("update", "docs/d1") not in doc.calls

    @pytest.mark.asyncio
    async def test_probe_precedes_write(self, repository, doc):
        await repository.update_attributes("docs", "d1", {"a": 9})
        assert doc.calls == [("get", "docs/d1"), ("set", "docs/d1")]


class TestNotFound:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "call",
        [
            lambda r: r.update("docs", {"id": "nope"}, {"a": 1}),
            lambda r: r.update_all("docs", {"id": "nope"}, {"a": 1}),
            lambda r: r.replace_by_id("docs", "nope", {"a": 1}),
            lambda r: r.update_attributes("docs", "nope", {"a": 1}),
            lambda r: r.destroy_by_id("docs", "nope"),
            lambda r: r.destroy_all("docs", {"id": "nope"}),
        ],
    )
    async def test_missing_document(self, repository, fake_client, call):
        with pytest.raises(DocumentNotFoundError) as exc_info:
            await call(repository)
        assert exc_info.value.collection == "docs"
        assert exc_info.value.document_id == "nope"
        assert fake_client.calls == [("get", "docs/nope")]

    @pytest.mark.asyncio
    async def test_delete_between_probe_and_write(self, repository, fake_client):
        """A document removed after the probe surfaces as not found."""
        repository.exists = AsyncMock(return_value=True)
        with pytest.raises(DocumentNotFoundError):
            await repository.update("docs", {"id": "gone"}, {"a": 1})


class TestFilteredUpdate:
    @pytest.mark.asyncio
    async def test_update_all_without_id_uses_where(self, repository, people):
        updated = await repository.update_all("people", {"region": "EU"}, {"vip": True})

        assert updated == 2
        docs = people.documents("people")
        assert docs["ada"]["vip"] is True
        assert docs["cyd"]["vip"] is True
        assert "vip" not in docs["bob"]
        assert docs["ada"]["name"] == "Ada"

    @pytest.mark.asyncio
    async def test_update_all_no_match(self, repository, people):
        assert await repository.update_all("people", {"region": "APAC"}, {"x": 1}) == 0
        assert people.commit_sizes == []


class TestDestroy:
    @pytest.mark.asyncio
    async def test_destroy_by_id(self, repository, people):
        await repository.destroy_by_id("people", "ada")
        assert "ada" not in people.documents("people")

    @pytest.mark.asyncio
    async def test_destroy_all_by_id(self, repository, people):
        assert await repository.destroy_all("people", {"id": "bob"}) == 1
        assert sorted(people.documents("people")) == ["ada", "cyd", "dee"]

    @pytest.mark.asyncio
    async def test_destroy_all_clears_collection(self, repository, people):
        assert await repository.destroy_all("people") == 4
        assert people.documents("people") == {}

    @pytest.mark.asyncio
    async def test_destroy_all_scoped_by_where(self, repository, people):
        assert await repository.destroy_all("people", {"status": "active"}) == 3
        assert list(people.documents("people")) == ["cyd"]

    @pytest.mark.asyncio
    async def test_destroy_all_by_id_eq(self, repository, people):
        assert await repository.destroy_all("people", {"id": {"eq": "ada"}}) == 1
        assert sorted(people.documents("people")) == ["bob", "cyd", "dee"]

    @pytest.mark.asyncio
    async def test_destroy_all_by_id_in(self, repository, people):
        assert await repository.destroy_all("people", {"id": {"in": ["ada", "dee"]}}) == 2
        assert sorted(people.documents("people")) == ["bob", "cyd"]

    @pytest.mark.asyncio
    async def test_destroy_all_by_id_range_rejected(self, repository, people):
        with pytest.raises(InvalidFilterError, match="not supported"):
            await repository.destroy_all("people", {"id": {"gt": "a"}})
        assert len(people.documents("people")) == 4


class TestPing:
    @pytest.mark.asyncio
    async def test_ping_ok(self, repository):
        assert await repository.ping() is True

    @pytest.mark.asyncio
    async def test_ping_without_project(self, fake_client):
        fake_client.project = None
        repository = FirestoreRepository(fake_client)
        with pytest.raises(FirestoreConnectionError, match="Ping"):
            await repository.ping()


class TestStoreErrors:
    def _client_failing_with(self, error):
        client = MagicMock()
        ref = client.collection.return_value.document.return_value
        ref.get = AsyncMock(side_effect=error)
        return client

    @pytest.mark.asyncio
    async def test_unavailable_is_connectivity(self):
        client = self._client_failing_with(gexc.ServiceUnavailable("down"))
        repository = FirestoreRepository(client)
        with pytest.raises(FirestoreConnectionError):
            await repository.find_by_id("people", "ada")

    @pytest.mark.asyncio
    async def test_permission_denied_is_store_error(self):
        client = self._client_failing_with(gexc.PermissionDenied("nope"))
        repository = FirestoreRepository(client)
        with pytest.raises(FirestoreStoreError, match="nope"):
            await repository.exists("people", "ada")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("document_id", ["a/b", "a/b/c", ""])
    async def test_path_like_id_rejected(self, repository, fake_client, document_id):
        with pytest.raises(InvalidFilterError, match="Invalid document id"):
            await repository.find_by_id("people", document_id)
        with pytest.raises(InvalidFilterError, match="Invalid document id"):
            await repository.create("people", {"id": document_id})
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_client_id_validation_is_store_error(self):
        client = MagicMock()
        client.collection.return_value.document.side_effect = ValueError(
            "A document must have an even number of path elements"
        )
        repository = FirestoreRepository(client)
        with pytest.raises(FirestoreStoreError, match="even number"):
            await repository.exists("people", "ada")

    @pytest.mark.asyncio
    async def test_find_routes_failures_to_error_channel(self):
        client = MagicMock()
        client.collection.return_value.get = AsyncMock(
            side_effect=gexc.InternalServerError("boom")
        )
        repository = FirestoreRepository(client)
        with pytest.raises(FirestoreStoreError):
            await repository.find("people")
