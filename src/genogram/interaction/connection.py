"""Two-phase connection drawing.

A connection starts from an origin (a person, or a relationship bubble for
children) and commits when a valid target is clicked. Gesture capture stays
with the rendering layer; this machine only decides what a click means.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Union

import structlog

from ..models import ChildEdge, PartnerEdge, RelationshipType
from ..store import GraphStore

logger = structlog.get_logger(__name__)


class ConnectionKind(str, Enum):
    """What the pending line will become."""
    PARTNER = "partner"  # person -> person
    CHILD = "child"  # relationship bubble -> child person
    PARENT = "parent"  # child person -> relationship bubble or parent person


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class ConnectingFrom:
    origin_id: str
    kind: ConnectionKind
    relationship_type: RelationshipType = RelationshipType.MARRIAGE


ConnectionState = Union[Idle, ConnectingFrom]


@dataclass(frozen=True)
class ConnectionRequest:
    """A validated connection ready to be applied.

    ``parent_relationship_id`` and ``child_id`` are set for child edges;
    ``person_a``/``person_b`` for partner edges. A parent connection that
    lands on a person sets ``parent_id`` and ``child_id`` and is resolved
    through the child connection policy.
    """
    kind: ConnectionKind
    relationship_type: RelationshipType | None = None
    person_a: str | None = None
    person_b: str | None = None
    parent_relationship_id: str | None = None
    parent_id: str | None = None
    child_id: str | None = None


Commit = Callable[[ConnectionRequest], Any]

_PROBE_ID = "__pending_connection__"


class ConnectionStateMachine:
    """Idle / ConnectingFrom(origin, kind).

    ``commit`` applies a request and returns something truthy when it
    succeeded; only then does the machine return to Idle. Clicking an
    invalid target leaves the state unchanged.
    """

    def __init__(self, store: GraphStore, commit: Commit):
        self._store = store
        self._commit = commit
        self._state: ConnectionState = Idle()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connecting(self) -> bool:
        return isinstance(self._state, ConnectingFrom)

    def start(
        self,
        origin_id: str,
        kind: ConnectionKind | str,
        relationship_type: RelationshipType | str = RelationshipType.MARRIAGE,
    ) -> bool:
        """Enter connection mode, replacing any pending origin."""
        try:
            kind = ConnectionKind(kind)
            relationship_type = RelationshipType(relationship_type)
        except ValueError:
            logger.debug("connection_kind_rejected", kind=kind, relationship_type=relationship_type)
            return False
        if not self._valid_origin(origin_id, kind):
            logger.debug("connection_origin_rejected", origin_id=origin_id, kind=kind.value)
            return False
        if kind != ConnectionKind.PARTNER:
            relationship_type = RelationshipType.CHILD
        elif relationship_type == RelationshipType.CHILD:
            return False
        self._state = ConnectingFrom(origin_id, kind, relationship_type)
        logger.debug("connection_started", origin_id=origin_id, kind=kind.value)
        return True

    def cancel(self) -> None:
        if self.is_connecting:
            logger.debug("connection_cancelled")
        self._state = Idle()

    def target_person(self, person_id: str) -> Any:
        """Click on a person while connecting.

        Returns the commit outcome, or None when the click was a no-op.
        """
        state = self._state
        if not isinstance(state, ConnectingFrom) or self._store.get_person(person_id) is None:
            return None

        if state.kind == ConnectionKind.PARTNER:
            probe = PartnerEdge(id=_PROBE_ID, type=state.relationship_type, person_a=state.origin_id, person_b=person_id)
            if person_id == state.origin_id or self._store.check_relationship(probe):
                return None
            request = ConnectionRequest(
                ConnectionKind.PARTNER,
                relationship_type=state.relationship_type,
                person_a=state.origin_id,
                person_b=person_id,
            )
        elif state.kind == ConnectionKind.CHILD:
            if not self._child_edge_valid(state.origin_id, person_id):
                return None
            request = ConnectionRequest(
                ConnectionKind.CHILD,
                relationship_type=RelationshipType.CHILD,
                parent_relationship_id=state.origin_id,
                child_id=person_id,
            )
        else:
            if person_id == state.origin_id:
                return None
            request = ConnectionRequest(ConnectionKind.PARENT, parent_id=person_id, child_id=state.origin_id)

        return self._apply(request)

    def target_relationship(self, relationship_id: str) -> Any:
        """Click on a relationship bubble while connecting.

        Only a parent connection accepts a bubble: the origin person becomes
        a child of that relationship.
        """
        state = self._state
        if not isinstance(state, ConnectingFrom) or state.kind != ConnectionKind.PARENT:
            return None
        if not self._child_edge_valid(relationship_id, state.origin_id):
            return None
        request = ConnectionRequest(
            ConnectionKind.PARENT,
            relationship_type=RelationshipType.CHILD,
            parent_relationship_id=relationship_id,
            child_id=state.origin_id,
        )
        return self._apply(request)

    def _apply(self, request: ConnectionRequest) -> Any:
        outcome = self._commit(request)
        if outcome:
            logger.debug("connection_committed", kind=request.kind.value)
            self._state = Idle()
        return outcome

    def _valid_origin(self, origin_id: str, kind: ConnectionKind) -> bool:
        if kind == ConnectionKind.CHILD:
            rel = self._store.get_relationship(origin_id)
            return isinstance(rel, PartnerEdge) and rel.can_parent
        return self._store.get_person(origin_id) is not None

    def _child_edge_valid(self, relationship_id: str, child_id: str) -> bool:
        probe = ChildEdge(id=_PROBE_ID, parent_relationship_id=relationship_id, child_id=child_id)
        return self._store.check_relationship(probe) is None
