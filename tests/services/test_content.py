# tests/services/test_content.py
import pytest

from mx_space.core.errors import BadInputError
from mx_space.models import Note, Post
from mx_space.services.content import MAX_YEAR, check_password, year_criteria


def test_year_criteria_bounds_created() -> None:
    assert year_criteria(Post, None) == []
    start, end = year_criteria(Post, 2021)
    assert start.right.value.year == 2021
    assert end.right.value.year == 2022
    assert len(year_criteria(Note, MAX_YEAR)) == 2


@pytest.mark.parametrize("year", [-1, MAX_YEAR + 1, 10_000])
def test_year_criteria_rejects_years_without_a_following_year(year: int) -> None:
    with pytest.raises(BadInputError):
        year_criteria(Post, year)


def test_check_password() -> None:
    assert check_password(Post(password=None), None)
    assert not check_password(Post(password="pw"), None)
    assert not check_password(Post(password="pw"), "nope")
    assert check_password(Post(password="pw"), "pw")
