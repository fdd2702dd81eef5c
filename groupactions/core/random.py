"""
Generate random group codes
"""

import secrets
import string

GROUP_CODE_ALPHABET = string.ascii_letters + string.digits


def group_code(length: int = 9) -> str:
    """
    A human-shareable alphanumeric join code. Codes are between 6 and 9
    characters long.
    """
    if not 6 <= length <= 9:
        raise ValueError(f"Group codes must be 6-9 characters, not {length}")

    return "".join(secrets.choice(GROUP_CODE_ALPHABET) for _ in range(length))
