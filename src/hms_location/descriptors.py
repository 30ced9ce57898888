from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import unquote

DEFAULT_PARTITION_NAME = "__HIVE_DEFAULT_PARTITION__"


@dataclass(frozen=True)
class FieldSchema:
    """A column or partition key as recorded by the metastore."""

    name: str
    type: str
    comment: Optional[str] = None


@dataclass(frozen=True)
class TableDescriptor:
    """Table metadata read from the metastore for the duration of one call."""

    db_name: str
    table_name: str
    location: Optional[str]
    table_type: Optional[str] = None
    owner: Optional[str] = None
    columns: List[FieldSchema] = field(default_factory=list)
    partition_keys: List[FieldSchema] = field(default_factory=list)
    tbl_id: Optional[int] = None
    sd_id: Optional[int] = None

    @property
    def is_partitioned(self) -> bool:
        return len(self.partition_keys) > 0


@dataclass(frozen=True)
class PartitionDescriptor:
    name: str
    location: Optional[str]

    @property
    def values(self) -> List[str]:
        # ds=2023-01-01/hr=00 -> ["2023-01-01", "00"]
        return [unquote(part.split("=", 1)[-1]) for part in self.name.split("/")]
