"""Protocol interfaces for the TVL aggregator."""
from .chain import ChainClient
from .notifier import Notifier
from .position_source import PositionDataSource

__all__ = ["ChainClient", "Notifier", "PositionDataSource"]
