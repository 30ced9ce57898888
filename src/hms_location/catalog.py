from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from pyiceberg.catalog import URI
from pyiceberg.typedef import Properties
from pyiceberg.utils.config import Config
from sqlalchemy import Connection, Row, create_engine, select, update
from sqlalchemy.exc import SQLAlchemyError

from hms_location.descriptors import FieldSchema, PartitionDescriptor, TableDescriptor
from hms_location.exceptions import CatalogConnectionError, NoSuchTableError
from hms_location.filters import to_partition_clause
from hms_location.models import ColumnsV2, Dbs, PartitionKeys, Partitions, Sds, Tbls

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "default-database"
DEFAULT_DATABASE_NAME = "default"
UNLIMITED = -1


def load_catalog(name: str, **properties: Any) -> MetastoreCatalog:
    """Create a catalog from the pyiceberg configuration of ``name``.

    Properties come from ``~/.pyiceberg.yaml`` or ``PYICEBERG_CATALOG__<NAME>__*``
    environment variables; keyword arguments take precedence.
    """
    conf = Config().get_catalog_config(name) or {}
    return MetastoreCatalog(name, **{**conf, **properties})


class MetastoreCatalog:
    def __init__(self, name: str, **properties: Any):
        self.name = name
        self.properties: Properties = properties
        if not properties.get(URI):
            raise CatalogConnectionError(
                f"Catalog {name} is missing the {URI} property"
            )
        self.uri = properties[URI]
        self.default_database = str(
            properties.get(DEFAULT_DATABASE) or DEFAULT_DATABASE_NAME
        ).lower()
        self._init_db()

    def _init_db(self):
        try:
            self.db = create_engine(self.uri)
        except (SQLAlchemyError, ImportError) as e:
            raise CatalogConnectionError(
                f"Cannot create engine for catalog {self.name}: {e}"
            ) from e

    def open_session(self) -> Connection:
        try:
            conn = self.db.connect()
        except SQLAlchemyError as e:
            raise CatalogConnectionError(
                f"Cannot connect to the metastore of catalog {self.name}"
            ) from e
        logger.debug("Opened metastore session for catalog %s", self.name)
        return conn

    def close_session(self, conn: Optional[Connection]) -> None:
        if conn is None or conn.closed:
            return
        try:
            conn.close()
        except SQLAlchemyError:
            logger.warning("Error closing metastore session", exc_info=True)
        logger.debug("Closed metastore session for catalog %s", self.name)

    @contextmanager
    def session(self) -> Iterator[Connection]:
        conn = None
        try:
            conn = self.open_session()
            yield conn
        finally:
            self.close_session(conn)

    def get_table(self, conn: Connection, db: str, table: str) -> TableDescriptor:
        db, table = db.lower(), table.lower()
        query = (
            select(
                Tbls.c.TBL_ID,
                Tbls.c.TBL_NAME,
                Tbls.c.TBL_TYPE,
                Tbls.c.OWNER,
                Dbs.c.NAME,
                Sds.c.SD_ID,
                Sds.c.CD_ID,
                Sds.c.LOCATION,
            )
            .select_from(
                Tbls.join(Dbs, Tbls.c.DB_ID == Dbs.c.DB_ID).outerjoin(
                    Sds, Tbls.c.SD_ID == Sds.c.SD_ID
                )
            )
            .where(Dbs.c.NAME == db)
            .where(Tbls.c.TBL_NAME == table)
            .limit(1)
        )
        rows = self._fetch_all(conn, query)
        if not rows:
            raise NoSuchTableError(f"Table does not exist: {db}.{table}")
        row = rows[0]

        query = (
            select(
                PartitionKeys.c.PKEY_NAME,
                PartitionKeys.c.PKEY_TYPE,
                PartitionKeys.c.PKEY_COMMENT,
            )
            .where(PartitionKeys.c.TBL_ID == row.TBL_ID)
            .order_by(PartitionKeys.c.INTEGER_IDX)
        )
        partition_keys = [FieldSchema(*c) for c in self._fetch_all(conn, query)]

        query = (
            select(ColumnsV2.c.COLUMN_NAME, ColumnsV2.c.TYPE_NAME, ColumnsV2.c.COMMENT)
            .where(ColumnsV2.c.CD_ID == row.CD_ID)
            .order_by(ColumnsV2.c.INTEGER_IDX)
        )
        columns = [FieldSchema(*c) for c in self._fetch_all(conn, query)]

        return TableDescriptor(
            db_name=row.NAME,
            table_name=row.TBL_NAME,
            location=row.LOCATION,
            table_type=row.TBL_TYPE,
            owner=row.OWNER,
            columns=columns,
            partition_keys=partition_keys,
            tbl_id=row.TBL_ID,
            sd_id=row.SD_ID,
        )

    def list_partitions_by_filter(
        self,
        conn: Connection,
        db: str,
        table: str,
        filter_expr: str,
        max_results: int = UNLIMITED,
    ) -> List[PartitionDescriptor]:
        hive_table = self.get_table(conn, db, table)
        clause = to_partition_clause(
            filter_expr, hive_table.partition_keys, Partitions.c.PART_ID
        )
        query = (
            select(Partitions.c.PART_NAME, Sds.c.LOCATION)
            .select_from(Partitions.outerjoin(Sds, Partitions.c.SD_ID == Sds.c.SD_ID))
            .where(Partitions.c.TBL_ID == hive_table.tbl_id)
            .where(clause)
            .order_by(Partitions.c.PART_NAME)
        )
        if max_results >= 0:
            query = query.limit(max_results)
        return [
            PartitionDescriptor(name=c.PART_NAME, location=c.LOCATION)
            for c in self._fetch_all(conn, query)
        ]

    def alter_table(
        self, conn: Connection, db: str, table: str, descriptor: TableDescriptor
    ) -> None:
        """Persist the table-level location of ``descriptor``.

        The update is committed as one transaction and rolled back on failure.
        """
        current = self.get_table(conn, db, table)
        if current.sd_id is None:
            raise CatalogConnectionError(
                f"Table {current.db_name}.{current.table_name} "
                "has no storage descriptor"
            )
        statement = (
            update(Sds)
            .where(Sds.c.SD_ID == current.sd_id)
            .values(LOCATION=descriptor.location)
        )
        try:
            result = conn.execute(statement)
            if result.rowcount != 1:
                conn.rollback()
                raise CatalogConnectionError(
                    f"Storage descriptor of {current.db_name}.{current.table_name} "
                    "was not updated"
                )
            conn.commit()
        except SQLAlchemyError as e:
            conn.rollback()
            raise CatalogConnectionError(
                f"Cannot alter table {current.db_name}.{current.table_name}"
            ) from e
        logger.debug(
            "Set location of %s.%s to %s",
            current.db_name,
            current.table_name,
            descriptor.location,
        )

    def _fetch_all(self, conn: Connection, query) -> List[Row]:
        try:
            return list(conn.execute(query).all())
        except SQLAlchemyError as e:
            raise CatalogConnectionError(
                f"Metastore query failed for catalog {self.name}"
            ) from e
