#!/usr/bin/env python3

from personal_wiki.config import PASSWORD_HASH_METHOD
from personal_wiki.errors import (
    WikiError,
    InvalidInput,
    ConversionFailed,
    UserAlreadyExists,
    UserNotFound,
    AuthMismatch,
    StorageError,
    HashingFailed,
    VerificationError,
)
from personal_wiki.storage import WikiRecord, WikiStorage
from personal_wiki.util.helpers import (
    render_markdown,
    hash_password,
    verify_password,
    validate_input,
)


def wiki_url(username: str) -> str:
    return f"/wikis/{username}"


class WikiResult:
    """
    Outcome of a wiki operation. Failures carry the error kind and a human readable reason.
    """

    def __init__(
        self,
        success: bool,
        error: str = None,
        error_kind: str = None,
        url: str = None,
    ):
        self.success = success
        self.error = error
        self.error_kind = error_kind
        self.url = url

    @classmethod
    def ok(cls, url: str = None) -> "WikiResult":
        return cls(success=True, url=url)

    @classmethod
    def failure(cls, exc: WikiError) -> "WikiResult":
        return cls(success=False, error=exc.reason, error_kind=exc.kind)

    def to_dict(self, include_url: bool = True) -> dict:
        result = {"success": self.success, "error": self.error}
        if include_url:
            result["url"] = self.url
        return result

    def __bool__(self):
        return self.success

    def __repr__(self):
        return f"WikiResult(success={self.success}, error_kind={self.error_kind}, error={self.error!r})"


class WikiStore:
    def __init__(
        self,
        storage: WikiStorage,
        log,
        renderer=render_markdown,
        hash_method: str = PASSWORD_HASH_METHOD,
    ):
        self.storage = storage
        self.log = log
        self.renderer = renderer
        self.hash_method = hash_method
        log.debug(f"WikiStore initialized with storage: {storage}")

    def __repr__(self):
        return f"WikiStore(storage={self.storage})"

    # Public operations

    def create(self, username: str, markdown_text: str, password: str) -> WikiResult:
        """
        Publishes a new wiki page for a username.
        #### Args:
            - username: str: owner of the page, must not already have one
            - markdown_text: str: markdown source of the page
            - password: str: secret required to update or delete the page later
        #### Returns:
            - WikiResult: success with the page url, or the failure reason
        """
        try:
            self._create(username, markdown_text, password)
        except WikiError as e:
            return self._fail("CreateWiki", username, e)
        self.log.info(f"[CreateWiki] {username}: Wiki successfully created")
        return WikiResult.ok(url=wiki_url(username))

    def get(self, username: str):
        """
        Looks up the rendered page of a username.
        #### Returns:
            - str: the stored HTML, None if the user has no wiki
        """
        try:
            validate_input(username, "USERNAME")
        except InvalidInput as e:
            self.log.warning(f"[GetWiki] {username!r}: {e.kind}: {e.reason}")
            return None

        try:
            self.storage.ensure_table()
            record = self.storage.get_record(username)
        except StorageError as e:
            self.log.error(f"[GetWiki] {username}: {e.reason}")
            return None

        if record is None:
            self.log.info(f"[GetWiki] {username}: Wiki not found for user {username}")
            return None
        self.log.info(f"[GetWiki] {username}: Wiki successfully retrieved")
        return record.content

    def update(self, username: str, markdown_text: str, password: str) -> WikiResult:
        """
        Replaces the content of an existing page. The password hash is left untouched.
        #### Args:
            - username: str: owner of the page
            - markdown_text: str: new markdown source
            - password: str: must match the password given at creation
        #### Returns:
            - WikiResult: success with the page url, or the failure reason
        """
        try:
            self._update(username, markdown_text, password)
        except WikiError as e:
            return self._fail("UpdateWiki", username, e)
        self.log.info(f"[UpdateWiki] {username}: Wiki successfully updated")
        return WikiResult.ok(url=wiki_url(username))

    def delete(self, username: str, password: str) -> WikiResult:
        """
        Removes a page. The username can be used again afterwards.
        #### Returns:
            - WikiResult: success, or the failure reason
        """
        try:
            self._delete(username, password)
        except WikiError as e:
            return self._fail("DeleteWiki", username, e)
        self.log.info(f"[DeleteWiki] {username}: Wiki successfully deleted")
        return WikiResult.ok()

    # Internals, raising WikiError subclasses

    def _render(self, markdown_text: str) -> str:
        validate_input(markdown_text, "CONTENT")
        html_text = self.renderer(markdown_text)
        if html_text == markdown_text:
            raise ConversionFailed()
        return html_text

    def _create(self, username: str, markdown_text: str, password: str):
        validate_input(username, "USERNAME")
        validate_input(password, "PASSWORD")
        html_text = self._render(markdown_text)

        self.storage.ensure_table()
        if self.storage.get_record(username) is not None:
            raise UserAlreadyExists()

        password_hash = hash_password(password, method=self.hash_method)
        record = WikiRecord(username=username, content=html_text, password_hash=password_hash)
        if not self.storage.insert_record(record):
            # lost a race against a concurrent create
            raise UserAlreadyExists()

    def _authorize(self, username: str, password: str) -> WikiRecord:
        self.storage.ensure_table()
        record = self.storage.get_record(username)
        if record is None:
            raise UserNotFound()
        if not verify_password(password, record.password_hash):
            raise AuthMismatch()
        return record

    def _update(self, username: str, markdown_text: str, password: str):
        validate_input(username, "USERNAME")
        validate_input(password, "PASSWORD")
        html_text = self._render(markdown_text)
        self._authorize(username, password)
        if not self.storage.update_content(username, html_text):
            raise UserNotFound()

    def _delete(self, username: str, password: str):
        validate_input(username, "USERNAME")
        validate_input(password, "PASSWORD")
        self._authorize(username, password)
        if not self.storage.delete_record(username):
            raise UserNotFound()

    def _fail(self, event: str, username, exc: WikiError) -> WikiResult:
        if isinstance(exc, (StorageError, HashingFailed, VerificationError)):
            self.log.error(f"[{event}] {username}: {exc.kind}: {exc.reason}")
        else:
            self.log.warning(f"[{event}] {username}: {exc.kind}: {exc.reason}")
        return WikiResult.failure(exc)
