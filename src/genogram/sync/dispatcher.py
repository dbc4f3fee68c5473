"""Best-effort, fire-and-forget sync of graph changes.

Failures are logged and reported through ``notify``; they never touch the
local graph, which stays the source of truth for the editing session.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import httpx
import structlog

from ..models import PartnerEdge, Person
from ..store import EntityKind, GraphEvent, GraphEventType
from .client import CaseManagementClient, SyncError

logger = structlog.get_logger(__name__)

Notify = Callable[[str], None]
SyncCall = Callable[[], Awaitable[Any]]


def member_payload(person: Person, case_id: str | None = None) -> dict[str, Any]:
    first, _, last = person.name.strip().partition(" ")
    payload: dict[str, Any] = {
        "id": person.id,
        "firstName": first,
        "lastName": last,
        "notes": person.notes,
        "genogramNodeId": person.id,
    }
    if case_id:
        payload["childId"] = case_id
    return payload


def relationship_payload(rel: PartnerEdge, case_id: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": rel.id,
        "memberIdA": rel.person_a,
        "memberIdB": rel.person_b,
        "type": rel.type.value,
        "conflictFlag": rel.conflict_flag,
        "notes": rel.notes,
    }
    if case_id:
        payload["childId"] = case_id
    return payload


class SyncDispatcher:
    """Maps GraphStore events onto CaseManagementClient calls.

    Calls run in event order. When no event loop is running they are kept in
    a backlog until ``flush()`` is awaited.
    """

    def __init__(
        self,
        client: CaseManagementClient,
        case_id: str | None = None,
        notify: Notify | None = None,
    ) -> None:
        self.client = client
        self.case_id = case_id
        self.notify = notify
        self.failures = 0
        self._backlog: list[tuple[str, SyncCall]] = []
        self._last: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._backlog) + len(self._tasks)

    def handle_event(self, event: GraphEvent) -> None:
        """GraphStore event handler."""
        call = self._call_for(event)
        if call is not None:
            self._schedule(*call)

    def _call_for(self, event: GraphEvent) -> tuple[str, SyncCall] | None:
        entity = event.entity
        entity_id = event.entity_id
        client = self.client

        if event.kind == EntityKind.PERSON and entity_id:
            if event.event_type == GraphEventType.ADDED:
                payload = member_payload(entity, self.case_id)
                return f"create member {entity_id}", lambda: client.create_member(payload)
            if event.event_type == GraphEventType.UPDATED:
                payload = member_payload(entity, self.case_id)
                return f"update member {entity_id}", lambda: client.update_member(entity_id, payload)
            if event.event_type == GraphEventType.REMOVED:
                return f"delete member {entity_id}", lambda: client.delete_member(entity_id)

        # Only person-to-person lines exist on the backend
        if event.kind == EntityKind.RELATIONSHIP and isinstance(entity, PartnerEdge) and not entity.is_self_edge:
            if event.event_type == GraphEventType.ADDED:
                payload = relationship_payload(entity, self.case_id)
                return f"create relationship {entity_id}", lambda: client.create_relationship(payload)
            if event.event_type == GraphEventType.UPDATED:
                payload = relationship_payload(entity, self.case_id)
                return f"update relationship {entity_id}", lambda: client.update_relationship(entity_id, payload)
            if event.event_type == GraphEventType.REMOVED:
                return f"delete relationship {entity_id}", lambda: client.delete_relationship(entity_id)
        return None

    def _schedule(self, description: str, call: SyncCall) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._backlog.append((description, call))
            return

        task = loop.create_task(self._run(description, call, self._last))
        self._last = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, description: str, call: SyncCall, previous: asyncio.Task | None = None) -> bool:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])
        try:
            await call()
        except (SyncError, httpx.HTTPError) as e:
            logger.error("sync_failed", operation=description, error=str(e), status_code=getattr(e, "status_code", None))
            self._failed(description, e)
            return False
        except Exception as e:
            logger.error("sync_failed_unexpectedly", operation=description, error=str(e), exc_info=True)
            self._failed(description, e)
            return False
        logger.debug("sync_ok", operation=description)
        return True

    def _failed(self, description: str, error: Exception) -> None:
        self.failures += 1
        if self.notify is not None:
            self.notify(f"Could not sync change ({description}): {error}")

    async def flush(self) -> int:
        """Run the backlog and wait for in-flight calls. Returns failures seen."""
        backlog, self._backlog = self._backlog, []
        for description, call in backlog:
            if self._last is not None and not self._last.done():
                await asyncio.wait([self._last])
            await self._run(description, call)
        if self._tasks:
            await asyncio.wait(list(self._tasks))
        return self.failures
