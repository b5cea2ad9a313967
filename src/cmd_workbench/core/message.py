"""Command message wire type and classification.

// [LAW:one-source-of-truth] CommandMessage is the single structure for both
//   outbound requests and inbound responses; direction decides field meaning.
// [LAW:single-enforcer] parse_message is the sole inbound validation boundary.

This module is STABLE. Safe for `from` imports everywhere.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum


JsonDict = dict[str, object]

GLOBAL_FAULT_REFERENCE = "server.global"

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

# Keys written by older servers, mapped onto the current wire names.
_LEGACY_ALIASES: dict[str, str] = {
    "textdata": "bodydata",
    "script": "functionModule",
    "data": "attachments",
}


class MessageFormatError(ValueError):
    """Raised when an inbound frame is not a JSON object."""


class Delivery(Enum):
    """How one inbound message relates to one invoker."""

    GLOBAL_FAULT = "global_fault"
    SUCCESS = "success"
    ERROR = "error"
    CHUNK = "chunk"
    UNRELATED = "unrelated"


@dataclass(frozen=True)
class CommandMessage:
    """One request or response on the shared connection."""

    reference: str = ""
    command: str = ""
    function_module: str = ""
    args_src: str = ""
    status: str = ""
    error: str = ""
    bodydata: str = ""
    attachments: dict[str, str] = field(default_factory=dict)

    @property
    def normalized_status(self) -> str:
        return (self.status or "").lower()

    @property
    def is_success(self) -> bool:
        return self.normalized_status == STATUS_SUCCESS

    @property
    def is_error(self) -> bool:
        return self.normalized_status == STATUS_ERROR

    @property
    def is_global_fault(self) -> bool:
        return self.reference == GLOBAL_FAULT_REFERENCE

    def has_reference(self, reference: str) -> bool:
        return self.reference == reference

    def with_attachments(self, attachments: dict[str, str]) -> CommandMessage:
        """Return a copy carrying the given attachments (later keys win)."""
        merged = dict(self.attachments)
        merged.update(attachments)
        return replace(self, attachments=merged)

    def to_dict(self) -> JsonDict:
        return {
            "reference": self.reference,
            "command": self.command,
            "functionModule": self.function_module,
            "argsSrc": self.args_src,
            "status": self.status,
            "error": self.error,
            "bodydata": self.bodydata,
            "attachments": dict(self.attachments),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, raw: JsonDict) -> CommandMessage:
        """Build a message from a decoded JSON object.

        Missing keys default to empty values and legacy key names are
        accepted. Scalars that are not strings are stringified.
        """
        data = dict(raw)
        for legacy, current in _LEGACY_ALIASES.items():
            if legacy in data and current not in data:
                data[current] = data[legacy]

        raw_attachments = data.get("attachments")
        attachments: dict[str, str] = {}
        if isinstance(raw_attachments, dict):
            attachments = {str(k): _text(v) for k, v in raw_attachments.items()}

        return cls(
            reference=_text(data.get("reference")),
            command=_text(data.get("command")),
            function_module=_text(data.get("functionModule")),
            args_src=_text(data.get("argsSrc")),
            status=_text(data.get("status")),
            error=_text(data.get("error")),
            bodydata=_text(data.get("bodydata")),
            attachments=attachments,
        )


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def parse_message(raw: str | bytes) -> CommandMessage:
    """Decode one inbound frame.

    Raises:
        MessageFormatError: frame is not valid JSON or not a JSON object.
    """
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8", errors="replace")
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as err:
        raise MessageFormatError(f"Invalid JSON frame: {err}") from err
    if not isinstance(decoded, dict):
        raise MessageFormatError(f"Expected JSON object, got {type(decoded).__name__}")
    return CommandMessage.from_dict(decoded)


def global_fault(error: str) -> CommandMessage:
    """Build the channel-wide fault message every invoker treats as terminal."""
    return CommandMessage(
        reference=GLOBAL_FAULT_REFERENCE,
        status=STATUS_ERROR,
        error=error,
    )


def classify(message: CommandMessage, reference: str) -> Delivery:
    """Classify an inbound message from the point of view of one token.

    // [LAW:single-enforcer] The global-fault check runs ahead of the
    //   reference comparison; nothing else decides terminal vs chunk.
    """
    if message.is_global_fault:
        return Delivery.GLOBAL_FAULT
    if not message.has_reference(reference):
        return Delivery.UNRELATED
    if message.is_success:
        return Delivery.SUCCESS
    if message.is_error:
        return Delivery.ERROR
    return Delivery.CHUNK
