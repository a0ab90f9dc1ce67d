from __future__ import annotations

import secrets

STUDENT_NUMBER_DIGITS = 5
UNKNOWN_STUDENT_NUMBER = "N/A"


def generate_student_number(digits: int = STUDENT_NUMBER_DIGITS) -> str:
    """Generates a random student number without a leading zero."""
    if digits <= 0:
        raise ValueError("digits must be positive")
    lower = 10 ** (digits - 1)
    return str(lower + secrets.randbelow(9 * lower))
