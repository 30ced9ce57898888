from pyiceberg import exceptions as iceberg_exceptions


class LocationError(Exception):
    """Base class for every error raised by hms_location."""


class InvalidArgumentError(LocationError, ValueError):
    """Required table identification is missing."""


class InvalidFilterError(InvalidArgumentError):
    """A partition filter cannot be parsed or refers to a non-partition column."""


class CatalogConnectionError(LocationError):
    """The metastore could not be configured, reached or queried."""


class NoSuchTableError(LocationError, iceberg_exceptions.NoSuchTableError):
    """The requested table does not exist in the metastore."""


class SchemaBuildError(LocationError, ValueError):
    """A column list cannot be turned into a schema."""


class InvalidLocationError(LocationError, ValueError):
    """A target storage path is malformed."""


class NoMatchingPartitionError(LocationError):
    """A filter selected no partition, or the table is not partitioned."""
