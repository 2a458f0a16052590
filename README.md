# tablemeta

Look up the schema, partitioning and labels of warehouse tables, and the
columns that make up each table's unique key.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `tablemeta.spec`

The table model.

- `TableSpec` holds `project_name`, `dataset_name`, `table_name`,
  `partition_field`, `require_partition_filter`, `time_partitioning_type` (a
  `TimePartitioning`: `DAY`, `HOUR`, `MONTH` or `YEAR`, or `None`), `labels`,
  and `fields`, a list of root `FieldSpec` objects.
  `TableSpec.fields_flatten()` returns every field, nested ones included,
  depth first.
- `FieldSpec` holds `name`, `field_type` (a `FieldType`), `mode` (a `Mode`:
  `NULLABLE`, `REQUIRED` or `REPEATED`), `level` (root fields are level 1),
  `parent` and child `fields`. `FieldSpec.id()` is the dotted path from the
  root, for example `field_2.field_2_a.field_2_a_x`.
- `TableMetadataNotFoundError` and `UniqueConstraintNotFoundError` are both
  `LookupError` subclasses.

### `tablemeta.bigquery_store`

`MetadataStore(client, constraint_store)` builds a `TableSpec` for a table id
of the form `project.dataset.table`:

- an id that does not have exactly three dot-separated parts raises
  `ValueError`;
- the client is called as
  `client.dataset_in_project(project, dataset).table(name).metadata()` and
  must return a `TableMetadata` (with `FieldSchema` columns and an optional
  `TimePartitioningInfo`);
- an `ApiError` with code 404 from `metadata()` becomes
  `TableMetadataNotFoundError`; other errors propagate;
- a partitioned table with no partition column named gets
  `_PARTITIONTIME` as its partition field; an unknown partitioning type raises
  `ValueError`;
- unknown column types map to `FieldType.STRING`.

`MetadataStore.get_unique_constraints(table_id)` asks the
`ConstraintStore` it was given.

The helper functions `transform_fields`, `field_type`, `field_mode`,
`get_partition_field` and `convert_time_partitioning_type` are public too.

### `tablemeta.cached_store`

`CachedMetadataStore(cache_expiration_seconds, source)` wraps any object with
`get_metadata` and `get_unique_constraints`. Table specs are stored in memory
as msgpack bytes (`TableCache.to_bytes` / `TableCache.from_bytes`) for the
given number of seconds, up to about 100 MB in total. Errors of the source
propagate and nothing is cached for them. In the specs it returns, root
fields are ordered by name. Unique constraints are always read straight from
the source.

### `tablemeta.uniqueconstraint`

- `CSVDictionaryStore(file_path, file_reader=None)` reads a file in which
  each line is a table id, a semicolon, and the key columns separated by
  commas:

  ```
  sample-project.sample_dataset.sample_table_a;field1,field2
  sample-project.sample_dataset.sample_table_b;field1
  ```

  Every line, empty ones included, must have exactly one semicolon, or
  `CSVFormatError` is raised; so the file must not end with a newline.
  `parse(content)` and `parse_line(line)` do the parsing on their own.
- `CachedDictionaryStore(cache_expiration_seconds, source)` keeps the
  dictionary of any `DictionaryStore` in memory for the given time.
- `ConstraintStore(dictionary_store).fetch_constraints(table_id)` returns the
  key columns of one table, or raises `UniqueConstraintNotFoundError`.
- `DictionaryStoreFactory().create_dictionary_store(url)` returns a
  `CSVDictionaryStore` for a local path, and
  `StoreFactory().create_unique_constraint_store(url)` returns a
  `ConstraintStore` over a `CachedDictionaryStore` with a lifetime of 120
  seconds.

## Example

```python
from tablemeta.uniqueconstraint import StoreFactory

constraints = StoreFactory().create_unique_constraint_store("uniqueconstraint.csv")
print(constraints.fetch_constraints("sample-project.sample_dataset.sample_table_a"))
# ['field1', 'field2']
```

## What it does not do

- It ships no warehouse client. `MetadataStore` needs an object you supply
  that offers `dataset_in_project(...).table(...).metadata()` and returns
  `TableMetadata` values.
- Unique-key dictionaries come only from local files.
- Caches live in process memory only; there is no persistent storage.
- There is no command-line tool or server.