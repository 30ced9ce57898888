from sqlalchemy import text

from hms_location.catalog import MetastoreCatalog

DDL = [
    """
    CREATE TABLE DBS (
        DB_ID BIGINT NOT NULL PRIMARY KEY,
        NAME VARCHAR(128),
        DB_LOCATION_URI VARCHAR(4000) NOT NULL,
        OWNER_NAME VARCHAR(128)
    )
    """,
    """
    CREATE TABLE TBLS (
        TBL_ID BIGINT NOT NULL PRIMARY KEY,
        DB_ID BIGINT,
        SD_ID BIGINT,
        TBL_NAME VARCHAR(256),
        TBL_TYPE VARCHAR(128),
        OWNER VARCHAR(767),
        CREATE_TIME INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE SDS (
        SD_ID BIGINT NOT NULL PRIMARY KEY,
        CD_ID BIGINT,
        LOCATION VARCHAR(4000),
        INPUT_FORMAT VARCHAR(4000),
        OUTPUT_FORMAT VARCHAR(4000)
    )
    """,
    """
    CREATE TABLE COLUMNS_V2 (
        CD_ID BIGINT NOT NULL,
        COLUMN_NAME VARCHAR(767) NOT NULL,
        TYPE_NAME VARCHAR(4000),
        COMMENT VARCHAR(256),
        INTEGER_IDX INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE PARTITION_KEYS (
        TBL_ID BIGINT NOT NULL,
        PKEY_NAME VARCHAR(128) NOT NULL,
        PKEY_TYPE VARCHAR(767) NOT NULL,
        PKEY_COMMENT VARCHAR(4000),
        INTEGER_IDX INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE PARTITIONS (
        PART_ID BIGINT NOT NULL PRIMARY KEY,
        TBL_ID BIGINT,
        SD_ID BIGINT,
        PART_NAME VARCHAR(767),
        CREATE_TIME INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE PARTITION_KEY_VALS (
        PART_ID BIGINT NOT NULL,
        PART_KEY_VAL VARCHAR(256),
        INTEGER_IDX INTEGER NOT NULL
    )
    """,
]

FIXTURES = [
    """
    INSERT INTO DBS VALUES
    (1, 'analytics', '/data', 'hive'),
    (2, 'default', '/warehouse', 'hive')
    """,
    """
    INSERT INTO TBLS VALUES
    (1, 1, 1, 'sales', 'EXTERNAL_TABLE', 'hive', 0),
    (2, 1, 2, 'orders', 'MANAGED_TABLE', 'hive', 0),
    (3, 2, 3, 'events', 'MANAGED_TABLE', 'hive', 0),
    (4, 2, 4, 'prices', 'MANAGED_TABLE', 'hive', 0),
    (5, 1, NULL, 'staging', 'VIRTUAL_VIEW', 'hive', 0)
    """,
    """
    INSERT INTO SDS VALUES
    (1, 1, '/data/sales', NULL, NULL),
    (2, 2, '/data/orders', NULL, NULL),
    (3, 3, '/warehouse/events', NULL, NULL),
    (4, 4, '/warehouse/prices', NULL, NULL),
    (11, 1, '/data/sales/2023-01-01', NULL, NULL),
    (12, 1, '/data/sales/2023-01-02', NULL, NULL),
    (21, 3, '/warehouse/events/ds=2023-01-01/hr=9', NULL, NULL),
    (22, 3, '/warehouse/events/ds=2023-01-01/hr=10', NULL, NULL),
    (23, 3, '/warehouse/events/ds=2023-01-02/hr=0', NULL, NULL),
    (24, 3, '/warehouse/events/ds=__HIVE_DEFAULT_PARTITION__/hr=1', NULL, NULL),
    (25, 3, '/warehouse/events/ds=2023-01-03/hr=__HIVE_DEFAULT_PARTITION__', NULL, NULL),
    (41, 4, '/warehouse/prices/price=1.50', NULL, NULL),
    (42, 4, '/warehouse/prices/price=2.25', NULL, NULL),
    (43, 4, '/warehouse/prices/price=__HIVE_DEFAULT_PARTITION__', NULL, NULL)
    """,
    """
    INSERT INTO COLUMNS_V2 VALUES
    (1, 'id', 'bigint', NULL, 0),
    (1, 'amount', 'decimal(10,2)', 'sale amount', 1),
    (2, 'order_id', 'string', NULL, 0),
    (3, 'payload', 'map<string,array<int>>', NULL, 0)
    """,
    """
    INSERT INTO PARTITION_KEYS VALUES
    (1, 'ds', 'string', NULL, 0),
    (3, 'ds', 'string', NULL, 0),
    (3, 'hr', 'int', NULL, 1),
    (4, 'price', 'decimal(10,2)', NULL, 0)
    """,
    """
    INSERT INTO PARTITIONS VALUES
    (101, 1, 11, 'ds=2023-01-01', 0),
    (102, 1, 12, 'ds=2023-01-02', 0),
    (201, 3, 21, 'ds=2023-01-01/hr=9', 0),
    (202, 3, 22, 'ds=2023-01-01/hr=10', 0),
    (203, 3, 23, 'ds=2023-01-02/hr=0', 0),
    (204, 3, 24, 'ds=__HIVE_DEFAULT_PARTITION__/hr=1', 0),
    (205, 3, 25, 'ds=2023-01-03/hr=__HIVE_DEFAULT_PARTITION__', 0),
    (401, 4, 41, 'price=1.50', 0),
    (402, 4, 42, 'price=2.25', 0),
    (403, 4, 43, 'price=__HIVE_DEFAULT_PARTITION__', 0)
    """,
    """
    INSERT INTO PARTITION_KEY_VALS VALUES
    (101, '2023-01-01', 0),
    (102, '2023-01-02', 0),
    (201, '2023-01-01', 0),
    (201, '9', 1),
    (202, '2023-01-01', 0),
    (202, '10', 1),
    (203, '2023-01-02', 0),
    (203, '0', 1),
    (204, '__HIVE_DEFAULT_PARTITION__', 0),
    (204, '1', 1),
    (205, '2023-01-03', 0),
    (205, '__HIVE_DEFAULT_PARTITION__', 1),
    (401, '1.50', 0),
    (402, '2.25', 0),
    (403, '__HIVE_DEFAULT_PARTITION__', 0)
    """,
]


def create_metastore_tables(db):
    with db.connect() as conn:
        for sql in DDL:
            conn.execute(text(sql))
        conn.commit()


def create_catalog(**properties) -> MetastoreCatalog:
    catalog = MetastoreCatalog("test", uri="sqlite://", **properties)
    create_metastore_tables(catalog.db)
    with catalog.db.connect() as conn:
        for sql in FIXTURES:
            conn.execute(text(sql))
        conn.commit()
    return catalog


def make_storage_read_only(db):
    with db.connect() as conn:
        sql = """
        CREATE TRIGGER SDS_READ_ONLY BEFORE UPDATE ON SDS
        BEGIN
            SELECT RAISE(ABORT, 'storage descriptors are read only');
        END
        """
        conn.execute(text(sql))
        conn.commit()
