import uuid
from dataclasses import dataclass, field
from typing import Optional

from livekit import rtc


@dataclass(frozen=True)
class TranscriptionNote:
    """A one-off caption used to surface a diagnostic in the room."""

    participant_identity: str
    track_sid: str
    text: str
    segment_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    final: bool = True

    def to_transcription(self) -> rtc.Transcription:
        return rtc.Transcription(
            participant_identity=self.participant_identity,
            track_sid=self.track_sid,
            segments=[
                rtc.TranscriptionSegment(
                    id=self.segment_id,
                    text=self.text,
                    start_time=0,
                    end_time=0,
                    language="",
                    final=self.final,
                )
            ],
        )


def get_microphone_track_sid(participant) -> Optional[str]:
    """Return the sid of the participant's microphone track, if published."""
    for publication in participant.track_publications.values():
        if publication.source == rtc.TrackSource.SOURCE_MICROPHONE:
            return publication.sid
    return None


async def publish_note(local_participant, note: TranscriptionNote):
    await local_participant.publish_transcription(note.to_transcription())
