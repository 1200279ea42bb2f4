from .store import Record, RecordStore, SortDirection, SortField

__version__ = "0.1.0"

__all__ = ["Record", "RecordStore", "SortDirection", "SortField", "__version__"]
