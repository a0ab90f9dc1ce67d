from __future__ import annotations

import pytest

from app.core.student_numbers import STUDENT_NUMBER_DIGITS, generate_student_number


def test_generate_student_number_has_fixed_width_without_leading_zero() -> None:
    for _ in range(200):
        number = generate_student_number()
        assert len(number) == STUDENT_NUMBER_DIGITS
        assert number.isdigit()
        assert number[0] != "0"


def test_generate_student_number_rejects_non_positive_width() -> None:
    with pytest.raises(ValueError):
        generate_student_number(0)
