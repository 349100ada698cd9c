from typing import Dict

from roomwhisper.modules.config import Config
from roomwhisper.modules.logging import log_info, log_warning
from roomwhisper.modules.session_config import resolve_session_config


class ReconfigurationHandler:
    """Applies attribute changes from one participant to the live session.

    Each change resolves a fresh config from the participant's current
    attributes overlaid with the changed ones, pushes it with a single
    session update and asks for a new response. Voice and audio formats
    are never hot-swapped.
    """

    def __init__(self, participant, session):
        self.identity = participant.identity
        self.session = session

    def attach(self, room):
        room.on("participant_attributes_changed", self.on_attributes_changed)

    def on_attributes_changed(self, changed_attributes: Dict[str, str], participant):
        if participant.identity != self.identity:
            return

        merged = {**participant.attributes, **changed_attributes}
        config = resolve_session_config(merged)
        log_info(f"Attributes changed for {self.identity}: {sorted(changed_attributes)}")

        if "voice" in changed_attributes:
            log_warning("Voice cannot be changed on a live session, keeping the current voice")

        self.session.session_update(config.to_update_payload())

        if "instructions" in changed_attributes:
            self.session.create_conversation_item(Config.INSTRUCTIONS_CHANGED_PROMPT)
        self.session.create_response()
