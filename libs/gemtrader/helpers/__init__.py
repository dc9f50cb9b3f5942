from gemtrader.helpers.factory import create_message, parse_message, parse_payload
from gemtrader.helpers.validation import is_valid_steam_id, validate_message

__all__ = [
    "create_message",
    "is_valid_steam_id",
    "parse_message",
    "parse_payload",
    "validate_message",
]
