"""Best-effort sync to the case-management backend."""

from .client import CaseManagementClient, SyncError
from .dispatcher import SyncDispatcher, member_payload, relationship_payload

__all__ = [
    "CaseManagementClient",
    "SyncError",
    "SyncDispatcher",
    "member_payload",
    "relationship_payload",
]
