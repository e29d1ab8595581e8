"""
Naming service: room codes, player names and session tokens

Pure generation/validation logic, no state transitions
"""
import re
import secrets

from core.exceptions import InvalidPlayerName

# No I/O/0/1: easy to read aloud and type
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6
PLAYER_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_ -]{1,20}$")


def generate_room_code() -> str:
    """
    Random 6-character room code.

    Example: K7QZ2M, HXB3PA

    Note:
    - uniqueness is not checked here (caller's job)
    - 32^6 ≈ 1.07 billion codes, collisions are rare
    """
    return ''.join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


def normalize_room_code(code: str) -> str:
    return code.strip().upper()


def validate_player_name(name) -> str:
    """
    Trim and validate a display name.

    Rule: 1-20 characters of letters, digits, underscore, space or hyphen.

    Raises:
        InvalidPlayerName
    """
    if not isinstance(name, str) or not PLAYER_NAME_PATTERN.match(name.strip()):
        raise InvalidPlayerName(
            "Invalid player name. Use 1-20 alphanumeric characters, "
            "underscores, spaces, or hyphens."
        )
    return name.strip()


def generate_session_token() -> str:
    """32 random bytes, hex encoded (64 chars)"""
    return secrets.token_hex(32)
