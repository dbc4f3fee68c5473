"""Decide how a child is attached when it is added from a single person.

The decision depends only on the person's current partner relationships and
is recomputed on every call; it never touches the graph.

======================  ===============================================
partner relationships   decision
======================  ===============================================
0                       ``ChooseParentage``: unknown co-parent, new
                        partner, existing co-parent or single parent
1                       ``AutoResolve`` against that relationship
2 or more               ``ChoosePartner``: one entry per relationship
                        plus an unknown co-parent
======================  ===============================================
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

import structlog

from ..models import RelationshipType
from ..store import GraphStore

logger = structlog.get_logger(__name__)


class ChildConnectionOption(str, Enum):
    UNKNOWN_CO_PARENT = "unknown_co_parent"
    NEW_PARTNER = "new_partner"
    EXISTING_CO_PARENT = "existing_co_parent"
    SINGLE_PARENT = "single_parent"
    SELECT_PARTNER = "select_partner"
    CANCEL = "cancel"


PARENTAGE_OPTIONS = (
    ChildConnectionOption.UNKNOWN_CO_PARENT,
    ChildConnectionOption.NEW_PARTNER,
    ChildConnectionOption.EXISTING_CO_PARENT,
    ChildConnectionOption.SINGLE_PARENT,
)


@dataclass(frozen=True)
class PartnerChoice:
    """One existing partner relationship offered to the user."""
    relationship_id: str
    partner_id: str
    partner_name: str
    relationship_type: RelationshipType
    start_date: str = ""

    @property
    def label(self) -> str:
        detail = self.relationship_type.value
        if self.start_date:
            detail = f"{detail}, {self.start_date}"
        return f"{self.partner_name} ({detail})"


@dataclass(frozen=True)
class AutoResolve:
    person_id: str
    relationship_id: str

    @property
    def needs_prompt(self) -> bool:
        return False


@dataclass(frozen=True)
class ChooseParentage:
    person_id: str
    options: tuple[ChildConnectionOption, ...] = PARENTAGE_OPTIONS

    @property
    def needs_prompt(self) -> bool:
        return True


@dataclass(frozen=True)
class ChoosePartner:
    person_id: str
    partners: tuple[PartnerChoice, ...]

    @property
    def needs_prompt(self) -> bool:
        return True

    @property
    def options(self) -> tuple[PartnerChoice | ChildConnectionOption, ...]:
        return (*self.partners, ChildConnectionOption.UNKNOWN_CO_PARENT)


ChildDecision = Union[AutoResolve, ChooseParentage, ChoosePartner]


class ChildConnectionResolver:
    def __init__(self, store: GraphStore):
        self._store = store

    def resolve(self, person_id: str) -> ChildDecision:
        relationships = self._store.partner_relationships_of(person_id)
        if len(relationships) == 1:
            decision: ChildDecision = AutoResolve(person_id, relationships[0].id)
        elif not relationships:
            decision = ChooseParentage(person_id)
        else:
            choices = []
            for rel in relationships:
                partner = self._store.get_person(rel.other(person_id))
                choices.append(PartnerChoice(
                    relationship_id=rel.id,
                    partner_id=partner.id,
                    partner_name=partner.display_name,
                    relationship_type=rel.type,
                    start_date=rel.start_date or "",
                ))
            decision = ChoosePartner(person_id, tuple(choices))

        logger.debug("child_connection_resolved", person_id=person_id, decision=type(decision).__name__)
        return decision
