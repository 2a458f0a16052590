"""Metadata store that keeps serialized table specs in a TTL cache."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Callable, Protocol

import msgpack
from cachetools import TTLCache

from tablemeta.spec import FieldSpec, FieldType, Mode, TableSpec, TimePartitioning

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 100 * 1024 * 1024


class _Source(Protocol):
    def get_metadata(self, table_id: str) -> TableSpec: ...

    def get_unique_constraints(self, table_id: str) -> list[str]: ...


@dataclass
class FieldCache:
    """Flat, serializable form of a field spec."""

    name: str
    id: str
    field_type: FieldType
    mode: Mode
    level: int
    parent_id: str = ""

    @classmethod
    def from_field_spec(cls, spec: FieldSpec) -> FieldCache:
        return cls(
            name=spec.name,
            id=spec.id(),
            field_type=spec.field_type,
            mode=spec.mode,
            level=spec.level,
            parent_id=spec.parent.id() if spec.parent is not None else "",
        )


@dataclass
class TableCache:
    """Flat, serializable form of a table spec."""

    project_name: str = ""
    dataset_name: str = ""
    table_name: str = ""
    partition_field: str = ""
    require_partition_filter: bool = False
    time_partitioning_type: TimePartitioning | None = None
    labels: dict[str, str] = field(default_factory=dict)
    fields: list[FieldCache] = field(default_factory=list)

    @classmethod
    def from_table_spec(cls, table_spec: TableSpec) -> TableCache:
        return cls(
            project_name=table_spec.project_name,
            dataset_name=table_spec.dataset_name,
            table_name=table_spec.table_name,
            partition_field=table_spec.partition_field,
            require_partition_filter=table_spec.require_partition_filter,
            time_partitioning_type=table_spec.time_partitioning_type,
            labels=dict(table_spec.labels),
            fields=[FieldCache.from_field_spec(spec) for spec in table_spec.fields_flatten()],
        )

    def to_table_spec(self) -> TableSpec:
        """Rebuild the nested table spec; root fields are ordered by name."""
        specs = {
            cached.id: FieldSpec(
                name=cached.name,
                field_type=cached.field_type,
                mode=cached.mode,
                level=cached.level,
            )
            for cached in self.fields
        }
        parent_ids = {cached.id: cached.parent_id for cached in self.fields if cached.parent_id}
        children: dict[str, list[str]] = {}
        for cached in self.fields:
            if cached.parent_id:
                children.setdefault(cached.parent_id, []).append(cached.id)

        for field_id, spec in specs.items():
            parent_id = parent_ids.get(field_id)
            spec.parent = specs.get(parent_id) if parent_id else None
            spec.fields = [specs[child] for child in children.get(field_id, []) if child in specs]

        roots = sorted((spec for spec in specs.values() if spec.parent is None), key=lambda s: s.name)
        return TableSpec(
            project_name=self.project_name,
            dataset_name=self.dataset_name,
            table_name=self.table_name,
            partition_field=self.partition_field,
            require_partition_filter=self.require_partition_filter,
            time_partitioning_type=self.time_partitioning_type,
            labels=dict(self.labels),
            fields=roots,
        )

    def to_bytes(self) -> bytes:
        """Serialize with msgpack."""
        data = asdict(self)
        if self.time_partitioning_type is not None:
            data["time_partitioning_type"] = self.time_partitioning_type.value
        for item in data["fields"]:
            item["field_type"] = FieldType(item["field_type"]).value
            item["mode"] = Mode(item["mode"]).value
        return msgpack.packb(data)

    @classmethod
    def from_bytes(cls, data: bytes) -> TableCache:
        """Deserialize what to_bytes produced."""
        raw = msgpack.unpackb(data)
        partitioning = raw.get("time_partitioning_type")
        return cls(
            project_name=raw["project_name"],
            dataset_name=raw["dataset_name"],
            table_name=raw["table_name"],
            partition_field=raw["partition_field"],
            require_partition_filter=raw["require_partition_filter"],
            time_partitioning_type=TimePartitioning(partitioning) if partitioning else None,
            labels=raw["labels"] or {},
            fields=[
                FieldCache(
                    name=item["name"],
                    id=item["id"],
                    field_type=FieldType(item["field_type"]),
                    mode=Mode(item["mode"]),
                    level=item["level"],
                    parent_id=item["parent_id"],
                )
                for item in raw["fields"]
            ],
        )


class CachedMetadataStore:
    """Serves table metadata from a cache, loading it from a source on a miss."""

    def __init__(
        self,
        cache_expiration_seconds: int,
        source: _Source,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._cache: TTLCache = TTLCache(
            maxsize=DEFAULT_CACHE_SIZE,
            ttl=cache_expiration_seconds,
            timer=timer,
            getsizeof=len,
        )
        self._lock = threading.Lock()

    def _load(self, urn: str) -> bytes:
        if not isinstance(urn, str):
            raise TypeError("wrong data type of cache key")
        table_spec = self._source.get_metadata(urn)
        logger.info("load table metadata: %s", urn)
        return TableCache.from_table_spec(table_spec).to_bytes()

    def get_metadata(self, urn: str) -> TableSpec:
        """Return the table spec for urn, errors of the source propagate."""
        with self._lock:
            packed = self._cache.get(urn)
            if packed is None:
                packed = self._load(urn)
                try:
                    self._cache[urn] = packed
                except ValueError:
                    logger.info("table metadata too large to cache: %s", urn)
        return TableCache.from_bytes(packed).to_table_spec()

    def get_unique_constraints(self, urn: str) -> list[str]:
        """Return the unique-constraint columns straight from the source."""
        return self._source.get_unique_constraints(urn)