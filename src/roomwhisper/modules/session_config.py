import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from roomwhisper.modules.config import Config
from roomwhisper.modules.logging import log_warning

TEXT_AND_AUDIO: Tuple[str, ...] = ("text", "audio")
TEXT_ONLY: Tuple[str, ...] = ("text",)

MODALITIES_MAP = {
    "text_and_audio": TEXT_AND_AUDIO,
    "text_only": TEXT_ONLY,
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _is_sendable(value: Optional[float], name: str) -> bool:
    """JSON has no NaN or Infinity, so non-finite numbers are left out with a warning."""
    if value is None:
        return False
    if not math.isfinite(value):
        log_warning(f"{name} {value!r} is not a finite number, leaving it out of the session update")
        return False
    return True


@dataclass(frozen=True)
class NoTurnDetection:
    """Turn detection disabled; the client decides when the user is done."""

    def to_dict(self) -> None:
        return None


@dataclass(frozen=True)
class ServerVAD:
    """Server-side voice activity detection.

    Fields left as None are omitted from the wire payload so the server
    applies its own defaults.
    """

    threshold: Optional[float] = None
    prefix_padding_ms: Optional[int] = None
    silence_duration_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": "server_vad"}
        if _is_sendable(self.threshold, "VAD threshold"):
            payload["threshold"] = self.threshold
        if self.prefix_padding_ms is not None:
            payload["prefix_padding_ms"] = self.prefix_padding_ms
        if self.silence_duration_ms is not None:
            payload["silence_duration_ms"] = self.silence_duration_ms
        return payload


TurnDetection = Union[NoTurnDetection, ServerVAD]


@dataclass(frozen=True)
class SessionConfig:
    credential: str = field(default="", repr=False)
    instructions: str = ""
    voice: str = ""
    temperature: float = 0.8
    max_output_tokens: Optional[int] = None
    modalities: Tuple[str, ...] = TEXT_AND_AUDIO
    turn_detection: TurnDetection = field(default_factory=ServerVAD)

    def to_update_payload(self) -> Dict[str, Any]:
        """Fields that can be changed on a live session.

        Voice and the audio formats are left out: the realtime session
        cannot switch them once audio has been produced.
        """
        payload: Dict[str, Any] = {
            "instructions": self.instructions,
            "max_response_output_tokens": self.max_output_tokens if self.max_output_tokens is not None else "inf",
            "modalities": list(self.modalities),
            "turn_detection": self.turn_detection.to_dict(),
        }
        if _is_sendable(self.temperature, "Temperature"):
            payload["temperature"] = self.temperature
        return payload

    def to_session_payload(self) -> Dict[str, Any]:
        """Full payload used when the session is first configured."""
        payload = self.to_update_payload()
        payload["input_audio_format"] = Config.AUDIO_FORMAT
        payload["output_audio_format"] = Config.AUDIO_FORMAT
        if self.voice:
            payload["voice"] = self.voice
        return payload


def modalities_from_string(modalities: Optional[str]) -> Tuple[str, ...]:
    if not isinstance(modalities, str):
        return TEXT_AND_AUDIO
    return MODALITIES_MAP.get(modalities, TEXT_AND_AUDIO)


def _parse_float(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if not isinstance(value, str):
        return math.nan
    match = _LEADING_FLOAT.match(value)
    if match:
        return float(match.group(1))
    try:
        return float(value)
    except ValueError:
        return math.nan


def _parse_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) or math.isinf(value) else int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def _resolve_turn_detection(raw: Mapping[str, Any]) -> TurnDetection:
    if raw.get("turn_detection_type") == "none":
        return NoTurnDetection()
    return ServerVAD(
        threshold=_parse_float(raw["vad_threshold"]) if "vad_threshold" in raw else None,
        prefix_padding_ms=_parse_int(raw["vad_prefix_padding_ms"]) if "vad_prefix_padding_ms" in raw else None,
        silence_duration_ms=(
            _parse_int(raw["vad_silence_duration_ms"]) if "vad_silence_duration_ms" in raw else None
        ),
    )


def resolve_session_config(raw: Mapping[str, Any]) -> SessionConfig:
    """Build a SessionConfig from participant metadata or attributes.

    Never raises: absent or empty keys fall back to defaults. Numbers
    are read from the leading numeric part of a string ("0.7x" -> 0.7,
    "700ms" -> 700). A temperature or VAD threshold with no leading
    number resolves to NaN; the wire payloads leave it out.
    """
    max_output_tokens = raw.get("max_output_tokens")
    return SessionConfig(
        credential=raw.get("openai_api_key") or "",
        instructions=raw.get("instructions") or "",
        voice=raw.get("voice") or "",
        temperature=_parse_float(raw.get("temperature") or Config.DEFAULT_TEMPERATURE),
        max_output_tokens=_parse_int(max_output_tokens) if max_output_tokens not in (None, "") else None,
        modalities=modalities_from_string(raw.get("modalities") or Config.DEFAULT_MODALITIES),
        turn_detection=_resolve_turn_detection(raw),
    )


def parse_participant_metadata(metadata: str) -> Dict[str, Any]:
    """Decode the JSON metadata a participant joins with."""
    data = json.loads(metadata)
    if not isinstance(data, dict):
        raise ValueError(f"Participant metadata must be a JSON object, got {type(data).__name__}")
    return data
