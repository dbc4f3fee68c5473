"""Tests for the host-embedding bridge."""

from unittest.mock import MagicMock

import pytest

from genogram.editor import GenogramEditor
from genogram.embed import FEATURES, PROTOCOL_VERSION, HostBridge


@pytest.fixture
def post():
    return MagicMock()


@pytest.fixture
def hosted(config, post):
    return GenogramEditor(config, host=HostBridge(post))


class TestHostBridge:
    """Tests for HostBridge messaging."""

    def test_announce(self, post):
        bridge = HostBridge(post)
        assert bridge.announce()
        message = post.call_args.args[0]
        assert message["type"] == "ready"
        assert message["version"] == PROTOCOL_VERSION
        assert message["features"] == list(FEATURES)

    def test_state_update_carries_people_and_relationships(self, hosted, post):
        person = hosted.add_person(name="Ada").entity
        message = post.call_args.args[0]
        assert message["type"] == "state_update"
        assert message["people"][0]["id"] == person.id
        assert message["relationships"] == []

    def test_undo_posts_state(self, hosted, post):
        hosted.add_person(name="Ada")
        post.reset_mock()
        hosted.undo()
        assert post.call_args.args[0]["people"] == []

    def test_request_save(self, hosted, post):
        hosted.add_person(name="Ada")
        reply = hosted.host.handle_message({"type": "request_save"})
        assert reply["type"] == "save"
        assert reply["isDirty"] is True
        assert len(reply["data"]["people"]) == 1
        assert post.call_args.args[0] is reply

    def test_load(self, hosted, post):
        reply = hosted.host.handle_message({
            "type": "load",
            "data": {"people": [{"id": "a"}, {"id": "b"}], "relationships": [
                {"id": "r", "type": "marriage", "from": "a", "to": "b"},
            ]},
        })
        assert reply["type"] == "loaded"
        assert reply["counts"]["people"] == 2
        assert reply["counts"]["relationships"] == 1
        assert hosted.store.get_person("a") is not None
        assert not hosted.is_dirty

    def test_load_failure_keeps_document(self, hosted, post):
        person = hosted.add_person(name="Ada").entity
        reply = hosted.host.handle_message({"type": "load", "data": {"people": 7}})
        assert reply["type"] == "load_failed"
        assert reply["error"]
        assert hosted.store.get_person(person.id) is not None

    def test_unknown_message_ignored(self, hosted, post):
        post.reset_mock()
        assert hosted.host.handle_message({"type": "ping"}) is None
        assert hosted.host.handle_message("garbage") is None
        post.assert_not_called()

    def test_post_failure_does_not_affect_editor(self, config):
        post = MagicMock(side_effect=ConnectionError("frame gone"))
        editor = GenogramEditor(config, host=HostBridge(post))
        result = editor.add_person(name="Ada")
        assert result.applied
        assert editor.can_undo
        assert editor.host.posted == 0

    def test_unattached_bridge_cannot_save(self, post):
        with pytest.raises(RuntimeError):
            HostBridge(post).handle_message({"type": "request_save"})
