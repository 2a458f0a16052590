import pytest

from tablemeta.bigquery_store import (
    ApiError,
    FieldSchema,
    MetadataStore,
    TableMetadata,
    TimePartitioningInfo,
    convert_time_partitioning_type,
    field_mode,
    field_type,
    get_partition_field,
    transform_fields,
)
from tablemeta.spec import (
    FieldSpec,
    FieldType,
    Mode,
    TableMetadataNotFoundError,
    TableSpec,
    TimePartitioning,
    UniqueConstraintNotFoundError,
)
from tablemeta.uniqueconstraint import ConstraintStore, DictionaryStore


class FakeTable:
    def __init__(self, metadata=None, error=None):
        self._metadata = metadata
        self._error = error

    def metadata(self):
        if self._error is not None:
            raise self._error
        return self._metadata


class FakeDataset:
    def __init__(self, table):
        self._table = table
        self.requested = []

    def table(self, table_name):
        self.requested.append(table_name)
        return self._table


class FakeClient:
    def __init__(self, dataset):
        self._dataset = dataset
        self.requested = []

    def dataset_in_project(self, project_name, dataset_name):
        self.requested.append((project_name, dataset_name))
        return self._dataset


class FakeDictionaryStore(DictionaryStore):
    def __init__(self, dictionary):
        self.dictionary = dictionary

    def get(self):
        return self.dictionary


def make_store(metadata=None, error=None, dictionary=None):
    dataset = FakeDataset(FakeTable(metadata, error))
    client = FakeClient(dataset)
    constraints = ConstraintStore(FakeDictionaryStore(dictionary or {}))
    return MetadataStore(client, constraints), client, dataset


def test_should_return_metadata():
    metadata = TableMetadata(
        name="table",
        time_partitioning=TimePartitioningInfo(field="field_1", type="DAY"),
        schema=[FieldSchema(name="field_1", type="STRING")],
        labels={"key": "value"},
        require_partition_filter=True,
    )
    store, client, dataset = make_store(metadata)

    actual = store.get_metadata("test-project.dataset.table")

    expected = TableSpec(
        project_name="test-project",
        dataset_name="dataset",
        table_name="table",
        partition_field="field_1",
        require_partition_filter=True,
        labels={"key": "value"},
        fields=[FieldSpec(name="field_1", field_type=FieldType.STRING, mode=Mode.NULLABLE, level=1)],
        time_partitioning_type=TimePartitioning.DAY,
    )
    assert actual == expected
    assert client.requested == [("test-project", "dataset")]
    assert dataset.requested == ["table"]


def test_should_raise_not_found_when_object_not_found():
    store, _, _ = make_store(TableMetadata(), error=ApiError(404))
    with pytest.raises(TableMetadataNotFoundError):
        store.get_metadata("test-project.dataset.table")


def test_other_api_errors_propagate():
    store, _, _ = make_store(TableMetadata(), error=ApiError(500))
    with pytest.raises(ApiError) as info:
        store.get_metadata("test-project.dataset.table")
    assert info.value.code == 500


def test_should_return_metadata_with_repeated_fields_and_levels():
    metadata = TableMetadata(
        name="table",
        time_partitioning=TimePartitioningInfo(field="field_1", type="DAY"),
        schema=[
            FieldSchema(name="field_1", type="STRING"),
            FieldSchema(
                name="field_2",
                type="RECORD",
                repeated=True,
                schema=[FieldSchema(name="field_2_child_1", type="FLOAT")],
            ),
        ],
        labels={"key": "value"},
    )
    store, _, _ = make_store(metadata)

    actual = store.get_metadata("test-project.dataset.table")

    parent = FieldSpec(name="field_2", field_type=FieldType.RECORD, mode=Mode.REPEATED, level=1)
    child = FieldSpec(
        name="field_2_child_1", field_type=FieldType.FLOAT, mode=Mode.NULLABLE, level=2, parent=parent
    )
    parent.fields = [child]
    expected = TableSpec(
        project_name="test-project",
        dataset_name="dataset",
        table_name="table",
        partition_field="field_1",
        time_partitioning_type=TimePartitioning.DAY,
        labels={"key": "value"},
        fields=[FieldSpec(name="field_1", field_type=FieldType.STRING, mode=Mode.NULLABLE, level=1), parent],
    )
    assert actual == expected
    nested = actual.fields[1].fields[0]
    assert nested.parent is actual.fields[1]
    assert nested.id() == "field_2.field_2_child_1"


@pytest.mark.parametrize("urn", ["project.dataset", "a.b.c.d", "table"])
def test_wrong_urn_format_raises(urn):
    store, _, _ = make_store(TableMetadata())
    with pytest.raises(ValueError, match="wrong format of urn"):
        store.get_metadata(urn)


def test_unsupported_partitioning_type_raises():
    metadata = TableMetadata(time_partitioning=TimePartitioningInfo(field="", type="WEEK"))
    store, _, _ = make_store(metadata)
    with pytest.raises(ValueError, match="type unsupported WEEK"):
        store.get_metadata("p.d.t")


def test_no_partitioning_leaves_fields_empty():
    store, _, _ = make_store(TableMetadata(name="t"))
    spec = store.get_metadata("p.d.t")
    assert spec.partition_field == ""
    assert spec.time_partitioning_type is None


def test_should_return_unique_constraints_when_table_found():
    urn = "test-project.dataset.table"
    store, _, _ = make_store(dictionary={urn: ["field1", "field2"]})
    assert store.get_unique_constraints(urn) == ["field1", "field2"]


def test_should_raise_when_unique_constraints_not_found():
    store, _, _ = make_store(dictionary={})
    with pytest.raises(UniqueConstraintNotFoundError):
        store.get_unique_constraints("test-project.dataset.table")


@pytest.mark.parametrize(
    "name, expected",
    [
        ("DAY", TimePartitioning.DAY),
        ("HOUR", TimePartitioning.HOUR),
        ("MONTH", TimePartitioning.MONTH),
        ("YEAR", TimePartitioning.YEAR),
    ],
)
def test_convert_time_partitioning_type(name, expected):
    assert convert_time_partitioning_type(name) is expected


def test_get_partition_field():
    assert get_partition_field(None) == ""
    assert get_partition_field(TimePartitioningInfo(field="")) == "_PARTITIONTIME"
    assert get_partition_field(TimePartitioningInfo(field="created")) == "created"


def test_field_mode():
    assert field_mode(True, True) is Mode.REPEATED
    assert field_mode(False, True) is Mode.REQUIRED
    assert field_mode(False, False) is Mode.NULLABLE


@pytest.mark.parametrize(
    "name, expected",
    [
        ("BYTES", FieldType.BYTES),
        ("INTEGER", FieldType.INTEGER),
        ("GEOGRAPHY", FieldType.GEOGRAPHY),
        ("DATETIME", FieldType.DATETIME),
        ("SOMETHING_ELSE", FieldType.STRING),
    ],
)
def test_field_type(name, expected):
    assert field_type(name) is expected


def test_transform_fields_sets_levels():
    schema = [
        FieldSchema(
            name="a",
            type="RECORD",
            schema=[FieldSchema(name="b", type="RECORD", schema=[FieldSchema(name="c", type="INTEGER")])],
        )
    ]
    (root,) = transform_fields(schema)
    leaf = root.fields[0].fields[0]
    assert [root.level, root.fields[0].level, leaf.level] == [1, 2, 3]
    assert leaf.id() == "a.b.c"