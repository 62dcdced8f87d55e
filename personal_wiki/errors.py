#!/usr/bin/env python3


class WikiError(Exception):
    """
    Base class for every failure a wiki operation can report.
    Each subclass names its kind and carries a human readable reason.
    """

    kind = "WikiError"
    default_reason = "Wiki operation failed"

    def __init__(self, reason: str = None):
        self.reason = reason or self.default_reason
        super().__init__(self.reason)


class InvalidInput(WikiError):
    kind = "InvalidInput"
    default_reason = "Invalid input"


class ConversionFailed(WikiError):
    kind = "ConversionFailed"
    default_reason = "Could not convert markdown text to HTML"


class UserAlreadyExists(WikiError):
    kind = "UserAlreadyExists"
    default_reason = "User already exists"


class UserNotFound(WikiError):
    kind = "UserNotFound"
    default_reason = "User does not exist"


class AuthMismatch(WikiError):
    kind = "AuthMismatch"
    default_reason = "Wrong username or password"


class HashingFailed(WikiError):
    kind = "HashingFailed"
    default_reason = "Could not hash password"


class VerificationError(WikiError):
    kind = "VerificationError"
    default_reason = "Could not verify password"


class StorageError(WikiError):
    kind = "StorageError"
    default_reason = "Storage operation failed"
