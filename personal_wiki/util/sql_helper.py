#!/usr/bin/env python3

import logging
import psycopg2
from psycopg2 import sql
from psycopg2.extras import RealDictCursor
from functools import wraps

from personal_wiki.config import (
    PSQL_HOST as sql_ip,
    PSQL_PORT as sql_port,
    PSQL_USER as sql_user,
    PSQL_PASS as sql_pass,
    PSQL_DATABASE as sql_db,
)

_logger = logging.getLogger(__name__)

# ============================================#      ######
# ==========# Connection functions #==========#    ###    E
# ============================================#      ######


def init_psql_connection(
    db,
    host=sql_ip,
    port=sql_port,
    user=sql_user,
    password=sql_pass,
) -> object:
    """
    psycopg2 connection factory.
    Args:
        db (str) : Database name **REQUIRED**
        host (str) : PostgreSQL Host IP
        port (int) : PostgreSQL Host Port
        user (str) : User registed in PSQL Server
        password (str) : Password for user.
    Returns:
        con (object) : Instance of the psycopg2.connect object.
    Raises:
        psycopg2.Error : If the connection cannot be established. Not retried.
    """
    try:
        con = psycopg2.connect(
            dbname=db, user=user, password=password, host=host, port=port
        )
    except psycopg2.Error as e:
        _logger.error(f"Error connecting to database {db} on {host}:{port}: {e}")
        raise

    return con


def init_psql_con_cursor(func):
    """
    If the function is given a connection and cursor, it will use them.
    If not, it will create a new psycopg2 connection and cursor, and close
    both once the decorated function returns.
    Inserts connection and cursor into the decorated function args.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        # Extract DB connection details from kwargs
        db = kwargs.get("database", sql_db)
        host = kwargs.pop("host", sql_ip)
        port = kwargs.pop("port", sql_port)
        user = kwargs.pop("user", sql_user)
        password = kwargs.pop("password", sql_pass)

        connection = kwargs.pop("connection", None)
        cursor = kwargs.pop("cursor", None)

        needs_new_connection = (
            connection is None
            or cursor is None
            or connection.closed != 0
            or cursor.closed
        )

        if needs_new_connection:
            con = init_psql_connection(db, host, port, user, password)
            cur = con.cursor(cursor_factory=RealDictCursor)
            try:
                # Inject cursor into the decorated function
                return func(cur, con, *args, **kwargs)
            finally:
                cur.close()
                con.close()
        else:
            return func(cursor, connection, *args, **kwargs)

    return wrapper


# ========================================#        ####
# ==========# Record Functions #==========#        ####
# ========================================#        ####


@init_psql_con_cursor
def get_record(
    cursor,
    connection,
    database: str,
    schema: str,
    table: str,
    column: str,
    value: str,
) -> dict:
    """
    Query a postgreSQL table for a single record. Intended to get records by primary or
    other unique key.
    Args:
        database (str) : Required, name of database to be queried
        schema (str) : Required, name of schema to be queried
        table (str) : Required, name of table to be queried
        column (str) : Required, column name to query by
        value (str) : Required, value to query by
    Returns:
        record (dict) : RealDictCursor dictionary fetched with the fetchone() method,
            None when nothing matches.
    """
    query = sql.SQL("SELECT * FROM {schema}.{table} WHERE {column} = %s").format(
        schema=sql.Identifier(schema),
        table=sql.Identifier(table),
        column=sql.Identifier(column),
    )
    cursor.execute(query, (value,))
    return cursor.fetchone()


@init_psql_con_cursor
def add_record(
    cursor,
    connection,
    database: str,
    schema: str,
    table: str,
    columns: list,
    values: list,
    conflict_target: list = None,
) -> bool:
    """
    Inserts a single record unless a row with the same conflict target already exists.
    The check and the insert happen in one statement, so two concurrent callers
    cannot both insert.
    Args:
        - database (str): The name of the database.
        - schema (str): The schema where the target table resides.
        - table (str): The name of the target table.
        - columns (list): A list of column names to be inserted.
        - values (list): A list of values corresponding to the columns.
        - conflict_target (list): Columns backed by a unique constraint. Defaults to ["id"].
    Returns:
        - bool: True if the row was inserted, False if it conflicted.
    """
    if conflict_target is None:
        conflict_target = ["id"]
    elif isinstance(conflict_target, str):
        conflict_target = [conflict_target]

    if len(columns) != len(values):
        raise ValueError("Columns and values must have the same length.")

    query = sql.SQL(
        """
        INSERT INTO {schema}.{table} ({columns})
        VALUES ({placeholders})
        ON CONFLICT ({conflict}) DO NOTHING
    """
    ).format(
        schema=sql.Identifier(schema),
        table=sql.Identifier(table),
        columns=sql.SQL(", ").join(map(sql.Identifier, columns)),
        placeholders=sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        conflict=sql.SQL(", ").join(map(sql.Identifier, conflict_target)),
    )

    try:
        cursor.execute(query, values)
        inserted = cursor.rowcount
        connection.commit()
    except Exception:
        connection.rollback()
        raise
    return inserted > 0


@init_psql_con_cursor
def update_existing_record(
    cursor,
    connection,
    database: str,
    schema: str,
    table: str,
    update_columns: list,
    update_values: list,
    where_column: str,
    where_value: str,
) -> int:
    """
    Updates an existing record in a specified database table.
    Returns:
        int : Number of rows updated.
    """
    if len(update_columns) != len(update_values):
        raise ValueError("Update columns and values must have the same length.")

    set_clause = sql.SQL(", ").join(
        sql.SQL("{} = %s").format(sql.Identifier(col)) for col in update_columns
    )

    query = sql.SQL(
        """
        UPDATE {schema}.{table}
        SET {set_clause}
        WHERE {where_column} = %s
    """
    ).format(
        schema=sql.Identifier(schema),
        table=sql.Identifier(table),
        set_clause=set_clause,
        where_column=sql.Identifier(where_column),
    )

    try:
        cursor.execute(query, list(update_values) + [where_value])
        updated = cursor.rowcount
        connection.commit()
    except Exception:
        connection.rollback()
        raise
    return updated


@init_psql_con_cursor
def delete_record(
    cursor,
    connection,
    database: str,
    log,
    schema_name,
    table_name,
    columns: list[str],
    values: list,
) -> int:
    if len(columns) != len(values):
        raise ValueError("Columns and values must have the same length.")

    conditions = [
        sql.SQL("{} = {}").format(sql.Identifier(col), sql.Placeholder())
        for col in columns
    ]

    query = sql.SQL("DELETE FROM {schema}.{table} WHERE {conditions}").format(
        schema=sql.Identifier(schema_name),
        table=sql.Identifier(table_name),
        conditions=sql.SQL(" AND ").join(conditions),
    )

    try:
        cursor.execute(query, values)
        rows_affected = cursor.rowcount
        connection.commit()
        log.debug(f"Delete operation successful for {rows_affected} rows.")
        return rows_affected
    except psycopg2.Error as e:
        log.error(f"Error executing delete query: {e}")
        connection.rollback()
        raise


# ========================================#
# ==========# Table Functions #===========#
# ========================================#


@init_psql_con_cursor
def ensure_table_exists(
    cursor,
    connection,
    database: str,
    log: object,
    schema_name: str,
    table_name: str,
    columns: list[dict],
    add_missing_columns: bool = True,
):
    """
    Ensure that the specified table exists in the database. If the table does not exist, it will be created.
    If the table exists and add_missing_columns is set, it will ensure that all specified columns exist,
    adding any that are missing.
    Args:
        database (str) : Name of the database
        log (object) : Logger object for logging messages
        schema_name (str) : Name of the schema
        table_name (str) : Name of the table
        columns (list[dict]) : List of column definitions
            Each column definition should be a dictionary with the following keys:
            - name (str) : Column name
            - type (str) : Column data type (default: "TEXT")
            - default (str) : Default value for the column (default: "NULL")
            - not_null (bool) : Whether the column should be NOT NULL (default: False)
        add_missing_columns (bool) : Add columns missing from an existing table (default: True)
    Returns:
        Bool : True if the table exists or was created successfully, False otherwise.
    """
    log.debug(f"Ensuring table {table_name} exists in schema {schema_name}")

    column_defs = []
    for col in columns:
        col_type = col.get("type", "TEXT")
        if col.get("default") is not None:
            col_type = f"{col_type} DEFAULT {col['default']}"
        if col.get("not_null", False):
            col_type = f"{col_type} NOT NULL"
        column_defs.append(
            sql.SQL("{} {}").format(sql.Identifier(col.get("name")), sql.SQL(col_type))
        )

    query = sql.SQL(
        """
        CREATE TABLE IF NOT EXISTS {schema_name}.{table_name} ({column_defs})
        """
    ).format(
        schema_name=sql.Identifier(schema_name),
        table_name=sql.Identifier(table_name),
        column_defs=sql.SQL(", ").join(column_defs),
    )

    try:
        cursor.execute(query)
        connection.commit()
    except psycopg2.Error as e:
        log.error(f"Error creating table {table_name} in schema {schema_name}: {e}")
        connection.rollback()
        return False

    if not add_missing_columns:
        return True

    # Tables created by older releases may be missing columns
    for col in columns:
        if col.get("type", "TEXT").upper().startswith("SERIAL"):
            continue
        added = add_column_to_table(
            cursor=cursor,
            connection=connection,
            database=database,
            log=log,
            schema_name=schema_name,
            table_name=table_name,
            column_name=col.get("name"),
            column_type=col.get("type", "TEXT"),
            default_value=col.get("default"),
        )
        if not added:
            return False

    log.debug(f"Table {table_name} ensured in schema {schema_name}")
    return True


@init_psql_con_cursor
def add_column_to_table(
    cursor,
    connection,
    database: str,
    log,
    schema_name: str,
    table_name: str,
    column_name: str,
    column_type: str,
    default_value: str = None,
):
    """
    Adds a new column to an existing table. If the column already exists, no action is taken.
    Args:
        database (str) : Name of the database
        log (object) : Logger object for logging messages
        schema_name (str) : Name of the schema
        table_name (str) : Name of the table
        column_name (str) : Name of the new column to add
        column_type (str) : Data type of the new column (e.g., "TEXT", "INTEGER")
        default_value (str) : SQL default expression for the new column (default: NULL)
    Returns:
        Bool : True if the column was added successfully or already exists, False otherwise.
    """
    # ALTER TABLE locks the table before evaluating IF NOT EXISTS
    check_query = sql.SQL(
        """
        SELECT 1 FROM information_schema.columns
        WHERE table_schema = %s AND table_name = %s AND column_name = %s
        """
    )
    try:
        cursor.execute(check_query, (schema_name, table_name, column_name))
        if cursor.fetchone():
            return True
    except psycopg2.Error as e:
        log.error(f"Error checking columns of {schema_name}.{table_name}: {e}")
        connection.rollback()
        return False

    alter_query = sql.SQL(
        """
        ALTER TABLE {schema_name}.{table_name}
        ADD COLUMN IF NOT EXISTS {col_name} {col_type} DEFAULT {col_default}
    """
    ).format(
        schema_name=sql.Identifier(schema_name),
        table_name=sql.Identifier(table_name),
        col_name=sql.Identifier(column_name),
        col_type=sql.SQL(column_type),
        col_default=sql.SQL(default_value if default_value is not None else "NULL"),
    )
    try:
        cursor.execute(alter_query)
        connection.commit()
        return True
    except psycopg2.Error as e:
        log.error(f"Error adding column {column_name} to table {schema_name}.{table_name}: {e}")
        connection.rollback()
        return False


@init_psql_con_cursor
def ensure_unique_index(
    cursor,
    connection,
    database: str,
    log,
    schema_name: str,
    table_name: str,
    column_name: str,
    index_name: str = None,
):
    """
    Creates a unique index on a column unless one with the same name already exists.
    Required by add_record for any conflict target.
    Returns:
        Bool : True if the index exists or was created, False otherwise.
    """
    index_name = index_name or f"{table_name}_{column_name}_key"
    index_name_obj = sql.Identifier(index_name)

    # CREATE INDEX takes a share lock even when the index exists
    check_query = sql.SQL(
        """
        SELECT 1 FROM pg_indexes
        WHERE schemaname = %s AND tablename = %s AND indexname = %s
        """
    )
    try:
        cursor.execute(check_query, (schema_name, table_name, index_name))
        if cursor.fetchone():
            return True
    except psycopg2.Error as e:
        log.error(f"Error checking indexes on {schema_name}.{table_name}: {e}")
        connection.rollback()
        return False

    query = sql.SQL(
        """
        CREATE UNIQUE INDEX IF NOT EXISTS {index_name}
        ON {schema_name}.{table_name} ({column_name})
        """
    ).format(
        index_name=index_name_obj,
        schema_name=sql.Identifier(schema_name),
        table_name=sql.Identifier(table_name),
        column_name=sql.Identifier(column_name),
    )
    try:
        cursor.execute(query)
        connection.commit()
        return True
    except psycopg2.Error as e:
        log.error(f"Error creating unique index on {schema_name}.{table_name}({column_name}): {e}")
        connection.rollback()
        return False
