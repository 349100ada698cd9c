from roomwhisper.core.transcription import TranscriptionNote, get_microphone_track_sid, publish_note
from roomwhisper.modules.config import Config
from roomwhisper.modules.logging import log_warning, logger
from roomwhisper.modules.realtime_session import RealtimeResponse

STATUS_NOTES = {
    "incomplete": Config.RESPONSE_INCOMPLETE_NOTE,
    "failed": Config.RESPONSE_FAILED_NOTE,
}


class ResponseStatusMonitor:
    """Captions incomplete or failed responses on the assistant's own track."""

    def __init__(self, room):
        self.room = room

    def attach(self, session):
        session.on("response_done", self.on_response_done)

    async def on_response_done(self, response: RealtimeResponse):
        message = STATUS_NOTES.get(response.status)
        if message is None:
            return

        log_warning(f"Response {response.id} ended as {response.status}: {response.status_details}")
        local_participant = self.room.local_participant
        track_sid = get_microphone_track_sid(local_participant)
        if track_sid is None:
            logger.debug("No local microphone track, skipping response status note")
            return

        note = TranscriptionNote(
            participant_identity=local_participant.identity,
            track_sid=track_sid,
            text=message,
        )
        await publish_note(local_participant, note)
