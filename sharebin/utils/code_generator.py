"""
Cryptographically secure share id generation.
"""
import re
import secrets

ID_BYTES = 4
ID_LENGTH = ID_BYTES * 2

_ID_PATTERN = re.compile(rf"^[0-9a-f]{{{ID_LENGTH}}}$")


def generate_share_id(nbytes: int = ID_BYTES) -> str:
    """
    Generate a random share id.

    Uses the `secrets` module so ids cannot be predicted from earlier ones.

    Returns:
        str: lowercase hex string, two characters per byte, e.g. "9f3a0c1e"
    """
    return secrets.token_hex(nbytes)


def is_valid_share_id(share_id: str) -> bool:
    """Check that a requested id has the shape generate_share_id produces."""
    return bool(_ID_PATTERN.match(share_id or ""))
