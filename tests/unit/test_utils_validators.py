import pytest

from backend.utils.validators import parse_iso_date, validate_password_strength, validate_username


@pytest.mark.parametrize("password,message", [
    ("Sh0rt", "at least 8 characters"),
    ("alllower1", "uppercase"),
    ("ALLUPPER1", "lowercase"),
    ("NoDigitsHere", "digit"),
])
def test_password_strength_rejects(password, message):
    with pytest.raises(ValueError) as exc:
        validate_password_strength(password)
    assert message in str(exc.value)


def test_password_strength_accepts():
    assert validate_password_strength("Str0ngPass") == "Str0ngPass"


def test_username():
    assert validate_username("  jane.doe ") == "jane.doe"
    for bad in ("ab", "has space", "x" * 51):
        with pytest.raises(ValueError):
            validate_username(bad)


def test_parse_iso_date():
    assert parse_iso_date("1990-01-31T00:00:00Z") == "1990-01-31"
    assert parse_iso_date("") is None
    with pytest.raises(ValueError):
        parse_iso_date("31/01/1990")
