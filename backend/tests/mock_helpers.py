"""
Mock helper classes for Neo4j testing.

These classes provide dict-like access to Neo4j records and results,
ensuring that rec["name"], rec.get("parent") and rec.data() work in tests.
"""
from typing import List, Optional, Any


class MockNeo4jRecord:
    """Mock Neo4j record that supports __getitem__ for dictionary-style access."""
    def __init__(self, data_dict: dict):
        self._data = data_dict

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def data(self) -> dict:
        """Return a copy of the underlying data, like neo4j.Record.data()."""
        return dict(self._data)

    def keys(self):
        return self._data.keys()


class MockNeo4jResult:
    """Mock Neo4j result that has a single() method and supports iteration."""
    def __init__(self, record: Optional[MockNeo4jRecord] = None, records: Optional[List[MockNeo4jRecord]] = None):
        """
        Initialize with either a single record or a list of records.

        Args:
            record: Single record for single() method
            records: List of records for iteration (if None, uses record if provided)
        """
        self._record = record
        if records is not None:
            self._records = records
        elif record is not None:
            self._records = [record]
        else:
            self._records = []

    def single(self) -> Optional[MockNeo4jRecord]:
        return self._record

    def __iter__(self):
        return iter(self._records)

    def __len__(self):
        return len(self._records)


def records_result(rows: List[dict]) -> MockNeo4jResult:
    """Build a MockNeo4jResult from a list of row dicts."""
    return MockNeo4jResult(records=[MockNeo4jRecord(row) for row in rows])
