"""Table and field specifications shared by the metadata stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

ROOT_LEVEL = 1
DEFAULT_PARTITION = "_PARTITIONTIME"


class FieldType(str, Enum):
    """Column data type."""

    STRING = "STRING"
    BYTES = "BYTES"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    BOOLEAN = "BOOLEAN"
    TIMESTAMP = "TIMESTAMP"
    RECORD = "RECORD"
    DATE = "DATE"
    TIME = "TIME"
    DATETIME = "DATETIME"
    NUMERIC = "NUMERIC"
    GEOGRAPHY = "GEOGRAPHY"


class Mode(str, Enum):
    """Column mode."""

    NULLABLE = "NULLABLE"
    REQUIRED = "REQUIRED"
    REPEATED = "REPEATED"


class TimePartitioning(str, Enum):
    """Granularity of a time-partitioned table."""

    DAY = "DAY"
    HOUR = "HOUR"
    MONTH = "MONTH"
    YEAR = "YEAR"


class TableMetadataNotFoundError(LookupError):
    """Raised when the metadata of a table does not exist."""

    def __init__(self, message: str = "table metadata not found") -> None:
        super().__init__(message)


class UniqueConstraintNotFoundError(LookupError):
    """Raised when no unique constraint is known for a table."""

    def __init__(self, message: str = "unique constraint not found") -> None:
        super().__init__(message)


@dataclass(eq=True)
class FieldSpec:
    """A column, possibly nested inside a record column."""

    name: str
    field_type: FieldType = FieldType.STRING
    mode: Mode = Mode.NULLABLE
    level: int = ROOT_LEVEL
    parent: FieldSpec | None = field(default=None, compare=False, repr=False)
    fields: list[FieldSpec] = field(default_factory=list)

    def id(self) -> str:
        """Dotted path of the field from the root of the table."""
        if self.parent is None:
            return self.name
        return f"{self.parent.id()}.{self.name}"

    def walk(self) -> Iterator[FieldSpec]:
        """Yield this field followed by all its descendants, depth first."""
        yield self
        for child in self.fields:
            yield from child.walk()


@dataclass
class TableSpec:
    """Description of a table and its schema."""

    project_name: str = ""
    dataset_name: str = ""
    table_name: str = ""
    partition_field: str = ""
    require_partition_filter: bool = False
    time_partitioning_type: TimePartitioning | None = None
    labels: dict[str, str] = field(default_factory=dict)
    fields: list[FieldSpec] = field(default_factory=list)

    def fields_flatten(self) -> list[FieldSpec]:
        """All fields of the table, nested ones included, depth first."""
        return [spec for root in self.fields for spec in root.walk()]