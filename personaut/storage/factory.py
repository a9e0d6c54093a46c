from personaut.config import settings
from personaut.storage.filesystem import FilesystemStorage
from personaut.storage.interface import BlobStorage


def get_storage() -> BlobStorage:
    """
    Factory function to create the blob storage from settings.

    Returns:
        A filesystem storage rooted at STORAGE_DIR
    """
    return FilesystemStorage(
        base_dir=settings.STORAGE_DIR,
        atomic_writes=settings.ATOMIC_WRITES,
        pretty_print=settings.PRETTY_JSON,
    )
