from .connectivity import ConnectivityMonitor
from .coordinator import CatalogSyncCoordinator, SyncState

__all__ = ["CatalogSyncCoordinator", "ConnectivityMonitor", "SyncState"]
