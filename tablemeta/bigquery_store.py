"""Table metadata read from a BigQuery-style warehouse client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from tablemeta.spec import (
    DEFAULT_PARTITION,
    ROOT_LEVEL,
    FieldSpec,
    FieldType,
    Mode,
    TableMetadataNotFoundError,
    TableSpec,
    TimePartitioning,
)
from tablemeta.uniqueconstraint import ConstraintStore


class ApiError(Exception):
    """Error reported by the warehouse API, carrying an HTTP status code."""

    def __init__(self, code: int, message: str = "") -> None:
        super().__init__(message or f"api error {code}")
        self.code = code


@dataclass
class FieldSchema:
    """A column as described by the warehouse."""

    name: str
    type: str = "STRING"
    repeated: bool = False
    required: bool = False
    schema: list[FieldSchema] = field(default_factory=list)


@dataclass
class TimePartitioningInfo:
    """Time partitioning settings of a table."""

    field: str = ""
    type: str = "DAY"


@dataclass
class TableMetadata:
    """Metadata of a table as described by the warehouse."""

    name: str = ""
    time_partitioning: TimePartitioningInfo | None = None
    schema: list[FieldSchema] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)
    require_partition_filter: bool = False


class _Table(Protocol):
    def metadata(self) -> TableMetadata: ...


class _Dataset(Protocol):
    def table(self, table_name: str) -> _Table: ...


class _Client(Protocol):
    def dataset_in_project(self, project_name: str, dataset_name: str) -> _Dataset: ...


_PARTITIONING_TYPES = {p.value: p for p in TimePartitioning}
_FIELD_TYPES = {t.value: t for t in FieldType}


def convert_time_partitioning_type(partitioning_type: str) -> TimePartitioning:
    """Map a warehouse partitioning type to a TimePartitioning."""
    try:
        return _PARTITIONING_TYPES[partitioning_type]
    except KeyError:
        raise ValueError(f"type unsupported {partitioning_type}") from None


def get_partition_field(time_partitioning: TimePartitioningInfo | None) -> str:
    """Name of the partition column, the pseudo column when none is named."""
    if time_partitioning is None:
        return ""
    return time_partitioning.field or DEFAULT_PARTITION


def field_mode(repeated: bool, required: bool) -> Mode:
    """Mode of a column from its repeated and required flags."""
    if repeated:
        return Mode.REPEATED
    if required:
        return Mode.REQUIRED
    return Mode.NULLABLE


def field_type(type_name: str) -> FieldType:
    """Map a warehouse type name to a FieldType, STRING when unknown."""
    return _FIELD_TYPES.get(type_name, FieldType.STRING)


def _create_field_spec(schema: FieldSchema, parent: FieldSpec | None, level: int) -> FieldSpec:
    current = FieldSpec(
        name=schema.name,
        field_type=field_type(schema.type),
        mode=field_mode(schema.repeated, schema.required),
        level=level,
        parent=parent,
    )
    current.fields = [_create_field_spec(child, current, level + 1) for child in schema.schema]
    return current


def transform_fields(schema: list[FieldSchema]) -> list[FieldSpec]:
    """Build field specs, with parents and levels, from a warehouse schema."""
    return [_create_field_spec(column, None, ROOT_LEVEL) for column in schema]


class MetadataStore:
    """Reads table metadata from a warehouse client."""

    def __init__(self, client: _Client, constraint_store: ConstraintStore) -> None:
        self.client = client
        self.constraint_store = constraint_store

    def get_metadata(self, table_id: str) -> TableSpec:
        """Return the spec of the table named ``project.dataset.table``.

        Raises ValueError on a malformed id and TableMetadataNotFoundError
        when the table does not exist.
        """
        segments = table_id.split(".")
        if len(segments) != 3:
            raise ValueError(
                f"wrong format of urn {table_id}. "
                "expected ${project-id}.${dataset}.${table_name}"
            )
        project_name, dataset_name, table_name = segments

        metadata = self._table_metadata(project_name, dataset_name, table_name)

        spec = TableSpec(
            project_name=project_name,
            dataset_name=dataset_name,
            table_name=table_name,
            partition_field=get_partition_field(metadata.time_partitioning),
            require_partition_filter=metadata.require_partition_filter,
            labels=metadata.labels,
            fields=transform_fields(metadata.schema),
        )
        if metadata.time_partitioning is not None:
            spec.time_partitioning_type = convert_time_partitioning_type(
                metadata.time_partitioning.type
            )
        return spec

    def get_unique_constraints(self, table_id: str) -> list[str]:
        """Return the unique-constraint columns of the table."""
        return self.constraint_store.fetch_constraints(table_id)

    def _table_metadata(self, project_name: str, dataset_name: str, table_name: str) -> TableMetadata:
        table = self.client.dataset_in_project(project_name, dataset_name).table(table_name)
        try:
            return table.metadata()
        except ApiError as err:
            if err.code == 404:
                raise TableMetadataNotFoundError() from err
            raise