"""Tests for the case-management client and the sync dispatcher."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from genogram.config import EditorConfig
from genogram.editor import GenogramEditor
from genogram.models import PartnerEdge, Person
from genogram.store import EntityKind, GraphEvent, GraphEventType
from genogram.sync import CaseManagementClient, SyncDispatcher, SyncError
from genogram.sync.dispatcher import member_payload, relationship_payload


def _client(handler, max_retries=2):
    return CaseManagementClient(
        "https://cases.test/",
        max_retries=max_retries,
        retry_delay=0,
        transport=httpx.MockTransport(handler),
    )


class TestCaseManagementClient:
    """Tests for CaseManagementClient."""

    @pytest.mark.asyncio
    async def test_create_member_posts_json(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"id": "m1"})

        async with _client(handler) as client:
            result = await client.create_member({"firstName": "Ada"})

        assert result == {"id": "m1"}
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/api/members"
        assert json.loads(seen[0].content) == {"firstName": "Ada"}

    @pytest.mark.asyncio
    async def test_list_members_passes_case_id(self):
        def handler(request):
            assert request.url.params["childId"] == "case-1"
            return httpx.Response(200, json=[{"id": "m1"}])

        async with _client(handler) as client:
            assert await client.list_members("case-1") == [{"id": "m1"}]

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(503)
            return httpx.Response(200, json={"ok": True})

        async with _client(handler) as client:
            assert await client.delete_member("m1") == {"ok": True}
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self):
        def handler(request):
            return httpx.Response(500, json={"error": "boom"})

        async with _client(handler, max_retries=1) as client:
            with pytest.raises(SyncError) as exc_info:
                await client.update_member("m1", {})
        assert exc_info.value.status_code == 500
        assert exc_info.value.response == {"error": "boom"}

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        async with _client(handler) as client:
            with pytest.raises(SyncError) as exc_info:
                await client.delete_relationship("r1")
        assert exc_info.value.status_code == 404
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_transport_error_becomes_sync_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler, max_retries=0) as client:
            with pytest.raises(SyncError):
                await client.create_relationship({})

    @pytest.mark.asyncio
    async def test_requires_context(self):
        client = _client(lambda request: httpx.Response(200))
        with pytest.raises(RuntimeError):
            await client.list_relationships("m1")

    def test_from_config_requires_base_url(self):
        with pytest.raises(ValueError):
            CaseManagementClient.from_config(EditorConfig(api_base_url=None))

        client = CaseManagementClient.from_config(
            EditorConfig(api_base_url="https://cases.test", api_max_retries=4)
        )
        assert client.max_retries == 4


class TestPayloads:
    """Tests for payload mapping."""

    def test_member_payload_splits_name(self):
        payload = member_payload(Person(id="p1", name="Ada King Lovelace"), "case-1")
        assert payload["firstName"] == "Ada"
        assert payload["lastName"] == "King Lovelace"
        assert payload["childId"] == "case-1"
        assert payload["genogramNodeId"] == "p1"

    def test_relationship_payload(self):
        rel = PartnerEdge(id="r1", person_a="a", person_b="b", conflict_flag=True)
        payload = relationship_payload(rel)
        assert payload["memberIdA"] == "a"
        assert payload["memberIdB"] == "b"
        assert payload["type"] == "marriage"
        assert payload["conflictFlag"] is True
        assert "childId" not in payload


class TestSyncDispatcher:
    """Tests for SyncDispatcher."""

    @pytest.fixture
    def client(self):
        return AsyncMock(spec=CaseManagementClient)

    @pytest.mark.asyncio
    async def test_editor_changes_reach_backend(self, client):
        dispatcher = SyncDispatcher(client, case_id="case-1")
        editor = GenogramEditor(EditorConfig(snap_to_grid=False), sync=dispatcher)

        a = editor.add_person(name="Ada").entity
        b = editor.add_person(name="Bo").entity
        rel = editor.create_relationship(a.id, b.id).entity
        editor.delete_person(b.id)
        await dispatcher.flush()

        assert client.create_member.await_count == 2
        client.create_relationship.assert_awaited_once()
        assert client.create_relationship.await_args.args[0]["id"] == rel.id
        client.delete_relationship.assert_awaited_once_with(rel.id)
        client.delete_member.assert_awaited_once_with(b.id)
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_child_edges_not_synced(self, client, family):
        dispatcher = SyncDispatcher(client)
        family.register_event_handler(dispatcher.handle_event)
        family.delete_relationship("c1")
        await dispatcher.flush()
        client.delete_relationship.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_calls_run_in_event_order(self):
        order = []
        client = MagicMock()

        async def create(payload):
            order.append(("create", payload["id"]))

        async def delete(member_id):
            order.append(("delete", member_id))

        client.create_member = create
        client.delete_member = delete
        dispatcher = SyncDispatcher(client)
        person = Person(id="p1")

        dispatcher.handle_event(GraphEvent(GraphEventType.ADDED, EntityKind.PERSON, "p1", person))
        dispatcher.handle_event(GraphEvent(GraphEventType.REMOVED, EntityKind.PERSON, "p1", person))
        await dispatcher.flush()

        assert order == [("create", "p1"), ("delete", "p1")]

    @pytest.mark.asyncio
    async def test_failure_notifies_and_keeps_graph(self, client):
        client.create_member.side_effect = SyncError("down", 503)
        notify = MagicMock()
        dispatcher = SyncDispatcher(client, notify=notify)
        editor = GenogramEditor(EditorConfig(snap_to_grid=False), sync=dispatcher)

        person = editor.add_person(name="Ada").entity
        failures = await dispatcher.flush()

        assert failures == 1
        notify.assert_called_once()
        assert "create member" in notify.call_args.args[0]
        assert editor.store.get_person(person.id) is not None

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, client):
        client.delete_member.side_effect = RuntimeError("Client not initialized. Use 'async with' context.")
        notify = MagicMock()
        dispatcher = SyncDispatcher(client, notify=notify)

        dispatcher.handle_event(GraphEvent(GraphEventType.REMOVED, EntityKind.PERSON, "p1", Person(id="p1")))
        dispatcher.handle_event(GraphEvent(GraphEventType.ADDED, EntityKind.PERSON, "p2", Person(id="p2")))

        assert await dispatcher.flush() == 1
        notify.assert_called_once()
        assert "delete member p1" in notify.call_args.args[0]
        client.create_member.assert_awaited_once()

    def test_backlog_without_loop(self, client):
        dispatcher = SyncDispatcher(client)
        dispatcher.handle_event(GraphEvent(GraphEventType.ADDED, EntityKind.PERSON, "p1", Person(id="p1")))
        assert dispatcher.pending == 1

    @pytest.mark.asyncio
    async def test_flush_runs_backlog(self, client):
        dispatcher = SyncDispatcher(client)
        dispatcher._backlog.append(("create member p1", lambda: client.create_member({"id": "p1"})))
        assert await dispatcher.flush() == 0
        client.create_member.assert_awaited_once_with({"id": "p1"})
