# tests/test_helpers.py
import pytest

from personal_wiki.errors import HashingFailed, InvalidInput, VerificationError
from personal_wiki.util.helpers import (
    hash_password,
    render_markdown,
    validate_input,
    verify_password,
)

from conftest import FAST_HASH_METHOD


def test_render_markdown_heading():
    html = render_markdown("# Hi")
    assert html.startswith("<h1")
    assert html.endswith(">Hi</h1>")


def test_render_markdown_supports_tables_and_fenced_code():
    table = render_markdown("| a | b |\n|---|---|\n| 1 | 2 |")
    assert "<table>" in table

    code = render_markdown("```\nprint('x')\n```")
    assert "<pre><code>" in code


def test_render_markdown_empty_input_is_unchanged():
    assert render_markdown("") == ""


@pytest.mark.parametrize("password", ["secret", "", "pässwörd with spaces", "x" * 200])
def test_password_round_trip(password):
    password_hash = hash_password(password, method=FAST_HASH_METHOD)

    assert password not in password_hash.split("$")
    assert verify_password(password, password_hash)
    assert not verify_password(password + "!", password_hash)


def test_hashes_are_salted():
    first = hash_password("secret", method=FAST_HASH_METHOD)
    second = hash_password("secret", method=FAST_HASH_METHOD)
    assert first != second


def test_default_method_is_scrypt():
    assert hash_password("secret").startswith("scrypt:")


@pytest.mark.parametrize("method", ["bogus", "pbkdf2:sha256:not-a-number", "scrypt:1:2"])
def test_invalid_hash_method_raises_hashing_failed(method):
    with pytest.raises(HashingFailed):
        hash_password("secret", method=method)


def test_invalid_salt_length_raises_hashing_failed():
    with pytest.raises(HashingFailed):
        hash_password("secret", method=FAST_HASH_METHOD, salt_length=0)


@pytest.mark.parametrize("stored", [None, "", "no-separators", "bogus$salt$value"])
def test_unusable_stored_hash_raises_verification_error(stored):
    with pytest.raises(VerificationError):
        verify_password("secret", stored)


@pytest.mark.parametrize("username", ["alice", "Alice", "al ice", "ali-ce.1"])
def test_validate_username_accepts(username):
    assert validate_input(username, "USERNAME") == username


@pytest.mark.parametrize("username", ["", "   ", " alice", "alice ", "a/b", None, 5])
def test_validate_username_rejects(username):
    with pytest.raises(InvalidInput):
        validate_input(username, "USERNAME")


def test_validate_password_and_content_types():
    assert validate_input("", "PASSWORD") == ""
    with pytest.raises(InvalidInput):
        validate_input(None, "PASSWORD")
    with pytest.raises(InvalidInput):
        validate_input(["# Hi"], "CONTENT")


@pytest.mark.parametrize("expected_type", ["USERNAME", "PASSWORD", "CONTENT"])
@pytest.mark.parametrize("value", ["a\x00b", "a\ud800b"])
def test_validate_rejects_text_postgres_cannot_store(value, expected_type):
    with pytest.raises(InvalidInput):
        validate_input(value, expected_type)
