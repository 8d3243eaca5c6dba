"""
Blob store capability used for prescription documents.
"""
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterator, Optional


@dataclass
class StoredObject:
    """
    A document fetched from the blob store.

    `chunks` streams the body; it must be consumed or `close()`d exactly once.
    """
    key: str
    chunks: Iterator[bytes]
    content_type: str
    content_length: int
    filename: Optional[str] = None
    on_close: Optional[Callable[[], None]] = None

    def close(self) -> None:
        if self.on_close is not None:
            self.on_close()
            self.on_close = None


class BlobStore:
    """
    Put/get/delete capability over opaque keys.

    Implementations raise StorageError for every failure.
    """

    def put(
        self,
        key: str,
        data: BinaryIO,
        content_length: int,
        content_type: str,
        filename: Optional[str] = None
    ) -> None:
        """Store `data` under `key`. Must not overwrite an existing object."""
        raise NotImplementedError

    def get(self, key: str) -> StoredObject:
        """Open the object stored under `key` for streaming."""
        raise NotImplementedError

    def delete(self, key: str) -> None:
        """Remove the object stored under `key`. Deleting a missing key is not an error."""
        raise NotImplementedError
