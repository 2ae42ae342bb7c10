from .store import DatasetStore, MergePolicy, QARecord

__all__ = [
    "DatasetStore",
    "MergePolicy",
    "QARecord",
]
