"""Interaction state machines driven by pointer and keyboard input."""

from .child_resolver import (
    AutoResolve,
    ChildConnectionOption,
    ChildConnectionResolver,
    ChildDecision,
    ChooseParentage,
    ChoosePartner,
    PartnerChoice,
)
from .connection import (
    ConnectingFrom,
    ConnectionKind,
    ConnectionRequest,
    ConnectionStateMachine,
    Idle,
)
from .history import HistoryManager
from .household_drawing import (
    Drawing,
    HouseholdDrawingStateMachine,
    NotDrawing,
    next_household_label,
)
from .selection import Selection, SelectionManager

__all__ = [
    "AutoResolve",
    "ChildConnectionOption",
    "ChildConnectionResolver",
    "ChildDecision",
    "ChooseParentage",
    "ChoosePartner",
    "PartnerChoice",
    "ConnectingFrom",
    "ConnectionKind",
    "ConnectionRequest",
    "ConnectionStateMachine",
    "Idle",
    "HistoryManager",
    "Drawing",
    "HouseholdDrawingStateMachine",
    "NotDrawing",
    "next_household_label",
    "Selection",
    "SelectionManager",
]
