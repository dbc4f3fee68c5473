"""Host-embedding protocol.

When the editor runs inside a host page, every committed change is posted
to the host as a ``state_update`` message, and the host can ask for an
explicit save or push a document to load.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

import structlog

from .models import GenogramDocument
from .store import DocumentError

if TYPE_CHECKING:
    from .editor import GenogramEditor

logger = structlog.get_logger(__name__)

PROTOCOL_VERSION = "2.0"
FEATURES = ("save", "load", "real-time-updates")

Post = Callable[[dict[str, Any]], None]


class HostBridge:
    """Posts editor state to a hosting frame through ``post``.

    Delivery is best-effort: a failing ``post`` is logged and never
    affects the editor. Messages are posted in mutation order.
    """

    def __init__(self, post: Post) -> None:
        self._post = post
        self._editor: GenogramEditor | None = None
        self.posted = 0

    def attach(self, editor: GenogramEditor) -> None:
        self._editor = editor

    def _send(self, message: dict[str, Any]) -> bool:
        try:
            self._post(message)
        except Exception as e:
            logger.error("host_post_failed", message_type=message.get("type"), error=str(e))
            return False
        self.posted += 1
        return True

    def announce(self) -> bool:
        return self._send({"type": "ready", "version": PROTOCOL_VERSION, "features": list(FEATURES)})

    def publish_state(self, document: GenogramDocument) -> bool:
        data = document.to_dict()
        return self._send({
            "type": "state_update",
            "people": data["people"],
            "relationships": data["relationships"],
        })

    def save_message(self) -> dict[str, Any]:
        """Serialize the whole document for the host.

        Built completely before anything is sent so the host never sees a
        partial document.
        """
        editor = self._require_editor()
        return {
            "type": "save",
            "data": editor.serialize(),
            "isDirty": editor.is_dirty,
        }

    def handle_message(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Answer a message from the host. Returns the reply, if any."""
        message_type = message.get("type") if isinstance(message, dict) else None
        if message_type == "request_save":
            reply = self.save_message()
            self._send(reply)
            return reply
        if message_type == "load":
            return self._load(message.get("data"))
        logger.debug("host_message_ignored", message_type=message_type)
        return None

    def _load(self, data: Any) -> dict[str, Any]:
        editor = self._require_editor()
        try:
            editor.load_from_data(data)
        except DocumentError as e:
            logger.warning("host_load_rejected", error=str(e))
            reply = {"type": "load_failed", "error": str(e)}
        else:
            reply = {"type": "loaded", "counts": editor.store.counts()}
        self._send(reply)
        return reply

    def _require_editor(self) -> GenogramEditor:
        if self._editor is None:
            raise RuntimeError("HostBridge is not attached to an editor")
        return self._editor
