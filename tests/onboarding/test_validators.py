import pytest

from modules.onboarding.validators import (
    MAX_INPUT_LENGTH,
    is_valid_email,
    is_valid_name,
    is_valid_phone,
    sanitize_input,
)


def test_sanitize_strips_and_flattens_control_whitespace():
    assert sanitize_input("  Jane\nDoe\t ") == "Jane Doe"
    assert sanitize_input("a\r\nb") == "a  b"


def test_sanitize_caps_length():
    assert len(sanitize_input("x" * 2000)) == MAX_INPUT_LENGTH
    assert sanitize_input("") == ""


@pytest.mark.parametrize("text", ["  hi  ", "a\nb\tc", "x" * 700, ""])
def test_sanitize_is_idempotent(text):
    once = sanitize_input(text)
    assert sanitize_input(once) == once
    assert len(once) <= MAX_INPUT_LENGTH


@pytest.mark.parametrize("name", ["Jo", "Jane Doe", "  Ana  ", "J1"])
def test_valid_names(name):
    assert is_valid_name(name)


@pytest.mark.parametrize("name", ["", "J", "7", " A ", "12345", "--"])
def test_invalid_names(name):
    assert not is_valid_name(name)


@pytest.mark.parametrize(
    "email",
    ["user@example.com", "first.last+tag@mail.example.co.in", "  a@b.io  "],
)
def test_valid_emails(email):
    assert is_valid_email(email)


@pytest.mark.parametrize(
    "email",
    ["", "user", "not-an-email", "a@b", "user@", "@example.com", "user@-example.com", "user name@example.com"],
)
def test_invalid_emails(email):
    assert not is_valid_email(email)


@pytest.mark.parametrize(
    "phone",
    ["+1 (234) 567-8900", "98765 43210", "1234567890", "123456789012345"],
)
def test_valid_phones(phone):
    assert is_valid_phone(phone)


@pytest.mark.parametrize("phone", ["", "123", "12345", "123-456-789", "1234567890123456", "phone"])
def test_invalid_phones(phone):
    assert not is_valid_phone(phone)


@pytest.mark.parametrize("text", ["\r\n\t", "a\tb\rc\nd", "  \tpadded\n ", "\n" * 600 + "x" * 600])
def test_sanitize_never_leaves_control_whitespace(text):
    cleaned = sanitize_input(text)

    assert not any(ch in cleaned for ch in "\r\n\t")
    assert len(cleaned) <= MAX_INPUT_LENGTH
