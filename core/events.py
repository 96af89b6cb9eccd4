"""
Inbound event definitions.

The transport delivers loosely-typed payloads; ``parse_event`` validates
them at the boundary into one of two frozen event types.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from core.exceptions import ValidationError, create_validation_error


class EventType(Enum):
    SLASH_COMMAND = "slash_command"
    TIP = "tip"


class Command(Enum):
    HELP = "help"
    START = "start"
    STATE = "state"
    LEAVE = "leave"
    FINISH = "finish"
    CASHOUT = "cashout"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SlashCommandEvent:
    command: Command
    user_id: str
    channel_id: str
    event_id: str
    args: Tuple[str, ...] = ()
    space_id: Optional[str] = None
    thread_id: Optional[str] = None
    created_at: datetime = field(default_factory=_utc_now)

    @property
    def type(self) -> EventType:
        return EventType.SLASH_COMMAND


@dataclass(frozen=True)
class TipEvent:
    user_id: str
    channel_id: str
    event_id: str
    message_id: str
    sender_address: str
    receiver_address: str
    amount: int
    currency: str
    space_id: Optional[str] = None
    created_at: datetime = field(default_factory=_utc_now)

    @property
    def type(self) -> EventType:
        return EventType.TIP


InboundEvent = Union[SlashCommandEvent, TipEvent]


def parse_event(payload: Dict[str, Any]) -> InboundEvent:
    """
    Validate a raw transport payload.

    Args:
        payload: Dict with a ``type`` of ``slash_command`` or ``tip``

    Returns:
        SlashCommandEvent or TipEvent

    Raises:
        ValidationError: If the payload is not a well-formed event
    """
    if not isinstance(payload, dict):
        raise create_validation_error("payload", type(payload).__name__, "Event payload must be an object.")

    raw_type = payload.get("type")
    try:
        event_type = EventType(raw_type)
    except ValueError:
        raise create_validation_error("type", raw_type, f"Unknown event type: {raw_type}")

    if event_type is EventType.SLASH_COMMAND:
        return _parse_slash_command(payload)
    return _parse_tip(payload)


def _parse_slash_command(payload: Dict[str, Any]) -> SlashCommandEvent:
    raw_command = _require_str(payload, "command").lstrip("/").lower()
    try:
        command = Command(raw_command)
    except ValueError:
        raise create_validation_error("command", raw_command, f"Unknown command: /{raw_command}")

    args = payload.get("args") or ()
    if not isinstance(args, (list, tuple)) or not all(isinstance(arg, str) for arg in args):
        raise create_validation_error("args", args, "Command arguments must be a list of strings.")

    return SlashCommandEvent(
        command=command,
        user_id=_require_str(payload, "user_id"),
        channel_id=_require_str(payload, "channel_id"),
        event_id=_require_str(payload, "event_id"),
        args=tuple(args),
        space_id=payload.get("space_id"),
        thread_id=payload.get("thread_id"),
        created_at=_optional_datetime(payload, "created_at"),
    )


def _parse_tip(payload: Dict[str, Any]) -> TipEvent:
    amount = payload.get("amount")
    # bool is an int subclass; a JSON true is not an amount
    if isinstance(amount, bool) or not isinstance(amount, int):
        if isinstance(amount, str) and amount.isdigit():
            amount = int(amount)
        else:
            raise create_validation_error("amount", amount, "Tip amount must be an integer number of wei.")
    if amount < 0:
        raise create_validation_error("amount", amount, "Tip amount must not be negative.")

    return TipEvent(
        user_id=_require_str(payload, "user_id"),
        channel_id=_require_str(payload, "channel_id"),
        event_id=_require_str(payload, "event_id"),
        message_id=_require_str(payload, "message_id"),
        sender_address=_require_str(payload, "sender_address"),
        receiver_address=_require_str(payload, "receiver_address"),
        amount=amount,
        currency=_require_str(payload, "currency"),
        space_id=payload.get("space_id"),
        created_at=_optional_datetime(payload, "created_at"),
    )


def _require_str(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise create_validation_error(key, value, f"Missing required field: {key}")
    return value


def _optional_datetime(payload: Dict[str, Any], key: str) -> datetime:
    value = payload.get(key)
    if value is None:
        return _utc_now()
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    raise ValidationError(f"Invalid timestamp for {key}: {value}", {"field": key, "value": value})
