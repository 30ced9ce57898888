from sqlalchemy import Table, Column, String, Integer, BigInteger, MetaData

metadata = MetaData()

Dbs = Table(
    "DBS",
    metadata,
    Column("DB_ID", BigInteger, primary_key=True),
    Column("NAME", String),
    Column("DB_LOCATION_URI", String),
    Column("OWNER_NAME", String),
)

Tbls = Table(
    "TBLS",
    metadata,
    Column("TBL_ID", BigInteger, primary_key=True),
    Column("DB_ID", BigInteger),
    Column("SD_ID", BigInteger),
    Column("TBL_NAME", String),
    Column("TBL_TYPE", String),
    Column("OWNER", String),
    Column("CREATE_TIME", Integer),
)

Sds = Table(
    "SDS",
    metadata,
    Column("SD_ID", BigInteger, primary_key=True),
    Column("CD_ID", BigInteger),
    Column("LOCATION", String),
    Column("INPUT_FORMAT", String),
    Column("OUTPUT_FORMAT", String),
)

ColumnsV2 = Table(
    "COLUMNS_V2",
    metadata,
    Column("CD_ID", BigInteger),
    Column("COLUMN_NAME", String),
    Column("TYPE_NAME", String),
    Column("COMMENT", String),
    Column("INTEGER_IDX", Integer),
)

PartitionKeys = Table(
    "PARTITION_KEYS",
    metadata,
    Column("TBL_ID", BigInteger),
    Column("PKEY_NAME", String),
    Column("PKEY_TYPE", String),
    Column("PKEY_COMMENT", String),
    Column("INTEGER_IDX", Integer),
)

Partitions = Table(
    "PARTITIONS",
    metadata,
    Column("PART_ID", BigInteger, primary_key=True),
    Column("TBL_ID", BigInteger),
    Column("SD_ID", BigInteger),
    Column("PART_NAME", String),
    Column("CREATE_TIME", Integer),
)

PartitionKeyVals = Table(
    "PARTITION_KEY_VALS",
    metadata,
    Column("PART_ID", BigInteger),
    Column("PART_KEY_VAL", String),
    Column("INTEGER_IDX", Integer),
)
