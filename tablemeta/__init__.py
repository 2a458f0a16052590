"""Table metadata stores, in-memory caching and unique-constraint dictionaries."""

__version__ = "0.1.0"
__all__ = ["spec", "uniqueconstraint", "bigquery_store", "cached_store"]