"""
Shared test fixtures for the room assistant.

Provides:
- Stand-in participants with attributes, metadata and track publications
- A recording session double
- A room double whose local participant records published transcriptions
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from livekit import rtc


def make_publication(sid, source, kind=rtc.TrackKind.KIND_AUDIO, track=None):
    return SimpleNamespace(sid=sid, source=source, kind=kind, track=track)


def make_participant(identity="user-1", attributes=None, metadata=None, publications=()):
    return SimpleNamespace(
        identity=identity,
        attributes=dict(attributes or {}),
        metadata=metadata if metadata is not None else "{}",
        track_publications={pub.sid: pub for pub in publications},
    )


@pytest.fixture
def participant():
    return make_participant(
        identity="user-1",
        attributes={"instructions": "Be brief.", "temperature": "0.6", "voice": "alloy"},
        metadata=json.dumps({"openai_api_key": "sk-test", "instructions": "Be brief.", "voice": "alloy"}),
    )


@pytest.fixture
def session():
    """Session double; method_calls keeps the order of mutation calls."""
    return MagicMock()


@pytest.fixture
def local_participant():
    return SimpleNamespace(
        identity="assistant",
        track_publications={
            "TR_cam": make_publication("TR_cam", rtc.TrackSource.SOURCE_CAMERA, kind=rtc.TrackKind.KIND_VIDEO),
            "TR_mic": make_publication("TR_mic", rtc.TrackSource.SOURCE_MICROPHONE),
        },
        publish_transcription=AsyncMock(),
    )


@pytest.fixture
def room(local_participant):
    room = MagicMock()
    room.local_participant = local_participant
    return room
