"""Process messages exchanged between the template worker and its host.

Messages travel as newline-delimited JSON objects. Commands carry a ``cmd``
discriminator; log records are sent as ``{"log": {"level": ..., "message": ...}}``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ProtocolError(Exception):
    """Raised for malformed messages or a broken host channel."""

    pass


class MessageCommand(Enum):
    """Message kinds understood by worker and host."""

    PROCESS_STARTED = "processStarted"
    GENERATE_STARTED = "generateStarted"
    GENERATE_FINISHED = "generateFinished"
    GET_MODEL = "getModel"
    SET_MODEL = "setModel"
    LOG = "log"


class LogLevel(Enum):
    """Log levels used when forwarding diagnostics to the host."""

    VERBOSE = "verbose"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class LogEntry:
    level: LogLevel
    message: str


@dataclass(frozen=True)
class ProcessMessage:
    """A single protocol message.

    ``model_data`` is only meaningful for ``setModel``; ``log`` only for
    ``log`` messages.
    """

    cmd: MessageCommand
    model_data: Any = None
    log: LogEntry | None = None

    @classmethod
    def log_message(cls, level: LogLevel, message: str) -> "ProcessMessage":
        return cls(MessageCommand.LOG, log=LogEntry(level, message))

    @classmethod
    def set_model(cls, model_data: Any) -> "ProcessMessage":
        return cls(MessageCommand.SET_MODEL, model_data=model_data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON-shaped wire envelope."""
        if self.cmd is MessageCommand.LOG:
            entry = self.log or LogEntry(LogLevel.INFO, "")
            return {"log": {"level": entry.level.value, "message": entry.message}}

        payload: dict[str, Any] = {"cmd": self.cmd.value}
        if self.cmd is MessageCommand.SET_MODEL:
            payload["modelData"] = self.model_data
        return payload

    @classmethod
    def from_dict(cls, payload: Any) -> "ProcessMessage":
        """Build a message from a decoded wire envelope.

        Raises:
            ProtocolError: If the envelope is not a recognized message.
        """
        if not isinstance(payload, dict):
            raise ProtocolError(f"Message must be a JSON object, got {type(payload).__name__}")

        if "log" in payload and "cmd" not in payload:
            entry = payload["log"] or {}
            try:
                level = LogLevel(entry.get("level", LogLevel.INFO.value))
            except ValueError:
                level = LogLevel.INFO
            return cls.log_message(level, str(entry.get("message", "")))

        try:
            cmd = MessageCommand(payload.get("cmd"))
        except ValueError:
            raise ProtocolError(f"Unknown message command: {payload.get('cmd')!r}")

        if cmd is MessageCommand.SET_MODEL:
            return cls.set_model(payload.get("modelData"))
        return cls(cmd)


def encode_message(message: ProcessMessage) -> str:
    """Encode a message as a JSON line (with trailing newline)."""
    return json.dumps(message.to_dict(), separators=(",", ":")) + "\n"


def decode_message(line: str | bytes) -> ProcessMessage:
    """Decode a JSON line into a message."""
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Invalid message JSON: {e}") from e
    return ProcessMessage.from_dict(payload)
