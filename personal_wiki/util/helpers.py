#!/usr/bin/env python3

import markdown
from werkzeug.security import generate_password_hash, check_password_hash

from personal_wiki.config import PASSWORD_HASH_METHOD
from personal_wiki.errors import HashingFailed, VerificationError, InvalidInput

MARKDOWN_EXTENSIONS = ["tables", "fenced_code", "toc"]


def render_markdown(markdown_text: str) -> str:
    """
    Converts markdown text into an HTML fragment.
    Args:
        markdown_text (str): The markdown source.
    Returns:
        str: The rendered HTML.
    """
    return markdown.markdown(markdown_text, extensions=MARKDOWN_EXTENSIONS)


def hash_password(
    password: str, method: str = PASSWORD_HASH_METHOD, salt_length: int = 16
) -> str:
    """
    Hashes a password with a random salt.
    Args:
        password (str): The plaintext password.
        method (str): werkzeug hash method, including its cost parameters. Default from config.
        salt_length (int): Length of the generated salt. Default is 16.
    Returns:
        str: The salted hash, formatted as "method$salt$hash".
    Raises:
        HashingFailed: If the method or its cost parameters are invalid.
    """
    try:
        return generate_password_hash(password, method=method, salt_length=salt_length)
    except (ValueError, TypeError) as e:
        raise HashingFailed(str(e)) from e


def verify_password(password: str, password_hash: str) -> bool:
    """
    Checks a plaintext password against a stored hash.
    Args:
        password (str): The plaintext password to check.
        password_hash (str): The stored hash.
    Returns:
        bool: True if the password matches, False otherwise.
    Raises:
        VerificationError: If the stored hash is missing or malformed, or its method cannot be evaluated.
    """
    if not password_hash:
        raise VerificationError("No password hash is stored for this wiki")
    if password_hash.count("$") < 2:
        raise VerificationError("Stored password hash is malformed")
    try:
        return check_password_hash(password_hash, password)
    except (ValueError, TypeError) as e:
        raise VerificationError(str(e)) from e


def _check_text(input_value, label: str):
    if not isinstance(input_value, str):
        raise InvalidInput(f"{label} must be a string.")
    # PostgreSQL text cannot hold NUL
    if "\x00" in input_value:
        raise InvalidInput(f"{label} cannot contain NUL characters.")
    try:
        input_value.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidInput(f"{label} is not valid UTF-8 text.") from None


def validate_input(input_value, expected_type: str = "USERNAME"):
    """
    Validate the input value against the expected type.
    Args:
        input_value (str): The input value to validate.
        expected_type (str): The expected type of the input value. Can be "USERNAME", "PASSWORD" or "CONTENT".
    Returns:
        str: The validated input value, unchanged. Usernames are case sensitive and never normalized.
    Raises:
        InvalidInput: If the input value does not match the expected type, contains NUL
            characters or cannot be encoded as UTF-8.
    """
    if expected_type == "USERNAME":
        _check_text(input_value, "Username")
        if not input_value.strip():
            raise InvalidInput("Username is required.")
        if input_value != input_value.strip():
            raise InvalidInput("Username cannot start or end with whitespace.")
        if "/" in input_value:
            raise InvalidInput("Username cannot contain '/'.")
    elif expected_type == "PASSWORD":
        _check_text(input_value, "Password")
    elif expected_type == "CONTENT":
        _check_text(input_value, "Content")

    return input_value
