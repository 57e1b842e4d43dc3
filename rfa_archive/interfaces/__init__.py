"""Public interface definitions for the archive's external collaborators.

The crawler and reader reach storage and the network only through the
abstract base classes in this package; concrete adapters are built at
startup and injected.

CONCRETE PROVIDER MAP:
    Interface          →  Concrete implementation (in rfa_archive/providers/)
    ─────────────────────────────────────────────────────────────────────
    IArchiveStore      →  SQLiteArchiveStore
    ISourceProvider    →  RFAFeedProvider
"""

from rfa_archive.interfaces.archive_store import IArchiveStore, Partition, WriteBatch
from rfa_archive.interfaces.source_provider import ISourceProvider

__all__ = ["IArchiveStore", "ISourceProvider", "Partition", "WriteBatch"]
