"""Records stored by the repositories."""

from cortexops.models.history import HistoryRecord

__all__ = ["HistoryRecord"]
