"""Document-sync client contract."""
from abc import ABC, abstractmethod


class DocumentSyncClient(ABC):
    """Local document store replicated to and from a remote store.

    Every method may raise a SyncError subclass.
    """

    @abstractmethod
    async def pull_from_remote(self) -> None:
        """Bring the local store up to date with the remote one."""
        pass

    @abstractmethod
    async def push_to_remote(self) -> None:
        """Send locally created or changed documents to the remote store."""
        pass

    @abstractmethod
    async def exists(self, doc_id: str) -> bool:
        """Check whether a document with this id is known locally."""
        pass

    @abstractmethod
    async def create_profile_document(self, doc_id: str, name: str) -> None:
        """Create a profile document locally; it is sent on the next push."""
        pass
