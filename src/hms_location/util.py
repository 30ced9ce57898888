from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional
from urllib.parse import SplitResult, urlsplit

from hms_location.catalog import DEFAULT_DATABASE_NAME, UNLIMITED, MetastoreCatalog
from hms_location.descriptors import TableDescriptor
from hms_location.exceptions import (
    InvalidArgumentError,
    InvalidLocationError,
    LocationError,
    NoMatchingPartitionError,
)

logger = logging.getLogger(__name__)


def get_data_storage_location(
    catalog: MetastoreCatalog,
    db: Optional[str],
    table: str,
    filter_expr: Optional[str] = None,
    *,
    strict: bool = False,
) -> List[str]:
    """Return the storage locations of a table, or of its partitions matching a filter.

    Without a filter the table-level location is returned. With a filter, the
    locations of all matching partitions are returned in catalog order. A filter
    on an unpartitioned table, or one matching nothing, logs an error and
    returns an empty list; with ``strict`` it raises NoMatchingPartitionError.
    """
    _check_table(table)
    db = default_db_if_null(db or None, catalog.default_database)

    try:
        with catalog.session() as conn:
            hive_table = catalog.get_table(conn, db, table)

            if _is_blank(filter_expr):
                return [hive_table.location]

            if hive_table.is_partitioned:
                # a range filter such as ds >= '2023-01-01' can match several partitions
                partitions = catalog.list_partitions_by_filter(
                    conn, db, table, filter_expr, UNLIMITED
                )
                if partitions:
                    logger.debug(
                        "Filter %r matched partition values %s",
                        filter_expr,
                        [part.values for part in partitions],
                    )
                    return [part.location for part in partitions]

            return _no_matching_partition(hive_table, filter_expr, strict)
    except LocationError:
        logger.exception(
            "Error getting storage location of %s.%s with filter %r",
            db,
            table,
            filter_expr,
        )
        raise


def set_data_storage_location(
    catalog: MetastoreCatalog,
    db: Optional[str],
    table: str,
    filter_expr: Optional[str],
    path: str,
) -> bool:
    """Point the table-level location of a table at ``path``.

    ``filter_expr`` is accepted for symmetry with get_data_storage_location but
    partition locations are never changed.
    """
    _check_table(table)
    db = default_db_if_null(db or None, catalog.default_database)
    if not _is_blank(filter_expr):
        logger.warning(
            "Ignoring filter %r, only the table-level location of %s.%s is set",
            filter_expr,
            db,
            table,
        )

    try:
        with catalog.session() as conn:
            hive_table = catalog.get_table(conn, db, table)
            parse_location(path)
            catalog.alter_table(conn, db, table, replace(hive_table, location=path))
    except LocationError:
        logger.exception(
            "Error setting storage location of %s.%s with filter %r to %r",
            db,
            table,
            filter_expr,
            path,
        )
        raise

    return True


def get_hive_table(
    catalog: MetastoreCatalog, db: Optional[str], table: str
) -> TableDescriptor:
    _check_table(table)
    db = default_db_if_null(db or None, catalog.default_database)

    try:
        with catalog.session() as conn:
            return catalog.get_table(conn, db, table)
    except LocationError:
        logger.exception("Error getting table %s.%s", db, table)
        raise


def parse_location(path: Optional[str]) -> SplitResult:
    if path is None or not path.strip():
        raise InvalidLocationError("Location must not be empty")
    if any(c.isspace() or not c.isprintable() for c in path):
        raise InvalidLocationError(
            f"Location contains whitespace or control characters: {path!r}"
        )
    try:
        location = urlsplit(path)
        location.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise InvalidLocationError(f"Malformed location: {path!r}") from e
    if not (location.netloc or location.path):
        raise InvalidLocationError(f"Location has no authority or path: {path!r}")
    return location


def hcat_default_db_if_null(db: Optional[str]) -> str:
    return default_db_if_null(db, DEFAULT_DATABASE_NAME)


def default_db_if_null(db: Optional[str], default_value: str) -> str:
    if db is None:
        db = default_value
    return db


def _check_table(table: Optional[str]):
    if table is None or not table.strip():
        raise InvalidArgumentError("Table name must not be null")


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _no_matching_partition(
    hive_table: TableDescriptor, filter_expr: str, strict: bool
) -> List[str]:
    message = (
        f"Table {hive_table.table_name} doesn't have the specified partition: "
        f"{filter_expr}"
    )
    if strict:
        raise NoMatchingPartitionError(message)
    logger.error(message)
    return []
