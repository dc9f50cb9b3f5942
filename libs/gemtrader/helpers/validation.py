"""Message and identifier validation utilities."""

import re

from pydantic import ValidationError

from gemtrader.models.envelope import Envelope
from gemtrader.models.messages import PAYLOAD_REGISTRY, MessageType

STEAM_ID64_RE = re.compile(r"^[0-9]{17}$")


def is_valid_steam_id(value: str) -> bool:
    """Check that `value` is a 17-digit SteamID64."""
    return bool(STEAM_ID64_RE.fullmatch(value))


def validate_message(envelope: Envelope) -> list[str]:
    """Validate an envelope for correctness.

    Returns a list of error strings. Empty list means valid.
    """
    errors: list[str] = []

    if not envelope.from_agent or not envelope.from_agent.strip():
        errors.append("'from' field must not be empty")

    if not envelope.topic or not envelope.topic.strip():
        errors.append("'topic' field must not be empty")

    try:
        msg_type = MessageType(envelope.type)
    except ValueError:
        errors.append(f"Unknown message type: {envelope.type}")
        return errors

    model_class = PAYLOAD_REGISTRY.get(msg_type)
    if model_class is None:
        errors.append(f"No payload schema registered for type: {msg_type}")
        return errors

    try:
        model_class.model_validate(envelope.payload)
    except ValidationError as e:
        for err in e.errors():
            loc = ".".join(str(x) for x in err["loc"])
            errors.append(f"payload.{loc}: {err['msg']}")

    return errors
