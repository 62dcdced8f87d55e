#!/usr/bin/env python3

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

import psycopg2

from personal_wiki.config import PSQL_DATABASE, WIKI_SCHEMA, WIKI_TABLE
from personal_wiki.errors import StorageError
from personal_wiki.util.sql_helper import (
    add_record,
    delete_record,
    ensure_table_exists,
    ensure_unique_index,
    get_record,
    update_existing_record,
)

# psycopg2 raises a plain ValueError when it cannot adapt a parameter, e.g. a NUL byte
DB_ERRORS = (psycopg2.Error, ValueError)

WIKI_COLUMNS = [
    {"name": "id", "type": "SERIAL PRIMARY KEY"},
    {"name": "username", "type": "TEXT", "not_null": True},
    {"name": "content", "type": "TEXT", "not_null": True},
    {"name": "password_hash", "type": "TEXT"},
    {"name": "created_at", "type": "TIMESTAMPTZ", "default": "now()"},
    {"name": "updated_at", "type": "TIMESTAMPTZ", "default": "now()"},
]


class WikiRecord:
    def __init__(self, username: str, content: str, password_hash: str = None):
        self.username = username
        self.content = content
        self.password_hash = password_hash

    @classmethod
    def from_row(cls, row: dict) -> "WikiRecord":
        return cls(
            username=row.get("username"),
            content=row.get("content"),
            password_hash=row.get("password_hash"),
        )

    def __eq__(self, other):
        if not isinstance(other, WikiRecord):
            return NotImplemented
        return (self.username, self.content, self.password_hash) == (
            other.username,
            other.content,
            other.password_hash,
        )

    def __repr__(self):
        return f"WikiRecord(username={self.username!r}, content_length={len(self.content or '')})"


class WikiStorage(ABC):
    """
    Persistence for wiki records, one per username.
    Implementations raise StorageError for any backend failure.
    """

    @abstractmethod
    def ensure_table(self) -> None:
        """Creates the backing table if it is missing. Idempotent."""

    @abstractmethod
    def get_record(self, username: str) -> Optional[WikiRecord]:
        ...

    @abstractmethod
    def insert_record(self, record: WikiRecord) -> bool:
        """
        Inserts the record unless the username is already taken.
        Returns False on conflict. Must be atomic with respect to other writers.
        """

    @abstractmethod
    def update_content(self, username: str, content: str) -> bool:
        """Replaces the content of an existing record. Returns False if no record matched."""

    @abstractmethod
    def delete_record(self, username: str) -> bool:
        """Removes a record. Returns False if no record matched."""


class PsqlWikiStorage(WikiStorage):
    """
    PostgreSQL storage. Every call opens and closes its own connection.
    """

    def __init__(
        self,
        log=None,
        database: str = PSQL_DATABASE,
        schema: str = WIKI_SCHEMA,
        table: str = WIKI_TABLE,
    ):
        self.log = log or logging.getLogger(__name__)
        self.database = database
        self.schema = schema
        self.table = table
        self._migrated = False

    def __repr__(self):
        return f"PsqlWikiStorage(database={self.database}, table={self.schema}.{self.table})"

    def ensure_table(self) -> None:
        """
        Creates the table when it is missing. Column and index migrations run once
        per instance, after which only the CREATE TABLE IF NOT EXISTS is repeated.
        """
        try:
            created = ensure_table_exists(
                database=self.database,
                log=self.log,
                schema_name=self.schema,
                table_name=self.table,
                columns=WIKI_COLUMNS,
                add_missing_columns=not self._migrated,
            )
            if created and not self._migrated:
                created = ensure_unique_index(
                    database=self.database,
                    log=self.log,
                    schema_name=self.schema,
                    table_name=self.table,
                    column_name="username",
                )
        except DB_ERRORS as e:
            raise StorageError(str(e)) from e
        if not created:
            raise StorageError(f"Could not create table {self.schema}.{self.table}")
        self._migrated = True

    def get_record(self, username: str) -> Optional[WikiRecord]:
        try:
            row = get_record(
                database=self.database,
                schema=self.schema,
                table=self.table,
                column="username",
                value=username,
            )
        except DB_ERRORS as e:
            raise StorageError(str(e)) from e
        if not row:
            return None
        return WikiRecord.from_row(row)

    def insert_record(self, record: WikiRecord) -> bool:
        try:
            return add_record(
                database=self.database,
                schema=self.schema,
                table=self.table,
                columns=["username", "content", "password_hash"],
                values=[record.username, record.content, record.password_hash],
                conflict_target=["username"],
            )
        except DB_ERRORS as e:
            raise StorageError(str(e)) from e

    def update_content(self, username: str, content: str) -> bool:
        try:
            updated = update_existing_record(
                database=self.database,
                schema=self.schema,
                table=self.table,
                update_columns=["content", "updated_at"],
                update_values=[content, datetime.now(timezone.utc)],
                where_column="username",
                where_value=username,
            )
        except DB_ERRORS as e:
            raise StorageError(str(e)) from e
        return updated > 0

    def delete_record(self, username: str) -> bool:
        try:
            deleted = delete_record(
                database=self.database,
                log=self.log,
                schema_name=self.schema,
                table_name=self.table,
                columns=["username"],
                values=[username],
            )
        except DB_ERRORS as e:
            raise StorageError(str(e)) from e
        return deleted > 0


class MemoryWikiStorage(WikiStorage):
    """
    In-process storage for tests and local development. Nothing survives a restart.
    """

    def __init__(self):
        self._records = {}
        self._lock = threading.Lock()

    def __repr__(self):
        return f"MemoryWikiStorage(records={len(self._records)})"

    def ensure_table(self) -> None:
        return None

    def get_record(self, username: str) -> Optional[WikiRecord]:
        with self._lock:
            record = self._records.get(username)
            if record is None:
                return None
            # callers never get a handle on the stored object
            return WikiRecord(record.username, record.content, record.password_hash)

    def insert_record(self, record: WikiRecord) -> bool:
        with self._lock:
            if record.username in self._records:
                return False
            self._records[record.username] = WikiRecord(
                record.username, record.content, record.password_hash
            )
            return True

    def update_content(self, username: str, content: str) -> bool:
        with self._lock:
            record = self._records.get(username)
            if record is None:
                return False
            record.content = content
            return True

    def delete_record(self, username: str) -> bool:
        with self._lock:
            return self._records.pop(username, None) is not None
