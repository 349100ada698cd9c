"""
Tests for applying participant attribute changes to a live session.
"""

from unittest.mock import call, patch

from roomwhisper.core.reconfiguration import ReconfigurationHandler
from roomwhisper.modules.config import Config
from roomwhisper.modules.session_config import SessionConfig

from conftest import make_participant


def test_attach_registers_room_callback(participant, session, room):
    handler = ReconfigurationHandler(participant, session)
    handler.attach(room)

    room.on.assert_called_once_with("participant_attributes_changed", handler.on_attributes_changed)


def test_changed_keys_overlay_current_attributes(session):
    participant = make_participant(attributes={"a": "1", "b": "2"})
    handler = ReconfigurationHandler(participant, session)

    with patch("roomwhisper.core.reconfiguration.resolve_session_config", return_value=SessionConfig()) as resolve:
        handler.on_attributes_changed({"b": "3"}, participant)

    resolve.assert_called_once_with({"a": "1", "b": "3"})


def test_update_excludes_voice(participant, session):
    handler = ReconfigurationHandler(participant, session)

    handler.on_attributes_changed({"voice": "verse", "temperature": "1.1"}, participant)

    update = session.session_update.call_args.args[0]
    assert update["temperature"] == 1.1
    assert update["instructions"] == "Be brief."
    assert "voice" not in update
    assert "input_audio_format" not in update
    assert "output_audio_format" not in update


def test_instructions_change_queues_acknowledgement_before_response(participant, session):
    handler = ReconfigurationHandler(participant, session)

    handler.on_attributes_changed({"instructions": "new"}, participant)

    update = session.session_update.call_args.args[0]
    assert update["instructions"] == "new"
    assert session.method_calls == [
        call.session_update(update),
        call.create_conversation_item(Config.INSTRUCTIONS_CHANGED_PROMPT),
        call.create_response(),
    ]


def test_other_changes_skip_acknowledgement(participant, session):
    handler = ReconfigurationHandler(participant, session)

    handler.on_attributes_changed({"temperature": "0.3"}, participant)

    session.create_conversation_item.assert_not_called()
    session.session_update.assert_called_once()
    session.create_response.assert_called_once_with()


def test_empty_change_still_updates_and_requests_response(participant, session):
    handler = ReconfigurationHandler(participant, session)

    handler.on_attributes_changed({}, participant)

    session.session_update.assert_called_once()
    session.create_conversation_item.assert_not_called()
    session.create_response.assert_called_once_with()


def test_other_participants_are_ignored(participant, session):
    handler = ReconfigurationHandler(participant, session)
    stranger = make_participant(identity="someone-else", attributes={"instructions": "x"})

    handler.on_attributes_changed({"instructions": "hijack"}, stranger)

    assert session.method_calls == []


def test_changes_are_applied_in_arrival_order(participant, session):
    handler = ReconfigurationHandler(participant, session)

    handler.on_attributes_changed({"temperature": "0.2"}, participant)
    handler.on_attributes_changed({"temperature": "0.9"}, participant)

    temperatures = [c.args[0]["temperature"] for c in session.session_update.call_args_list]
    assert temperatures == [0.2, 0.9]
