from abc import ABC, abstractmethod
from typing import Any, Optional


class BlobStorage(ABC):
    """
    Abstract interface for whole-file storage under a root directory.

    Paths are relative to the root and use forward slashes. Reads return
    None for missing files instead of raising; I/O failures raise
    StorageError.
    """

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if a file or directory exists at path."""
        pass

    @abstractmethod
    def ensure_directory(self, path: str) -> None:
        """Create a directory (and parents) if it does not exist."""
        pass

    @abstractmethod
    def read_json(self, path: str) -> Optional[Any]:
        """
        Read and decode a JSON document.

        Args:
            path: Relative path of the document

        Returns:
            Decoded data, or None if the file is missing or not valid JSON
        """
        pass

    @abstractmethod
    def write_json(self, path: str, data: Any) -> None:
        """
        Encode data as JSON and write it, creating parent directories.

        Args:
            path: Relative path of the document
            data: JSON-serializable data
        """
        pass

    @abstractmethod
    def read_text(self, path: str) -> Optional[str]:
        """Read a UTF-8 text file, or None if it does not exist."""
        pass

    @abstractmethod
    def write_text(self, path: str, content: str) -> None:
        """Write a UTF-8 text file, creating parent directories."""
        pass

    @abstractmethod
    def read_base64(self, path: str) -> Optional[str]:
        """Read a binary file and return it base64 encoded, or None if missing."""
        pass

    @abstractmethod
    def write_base64(self, path: str, data: str) -> None:
        """Decode base64 data and write the bytes, creating parent directories."""
        pass

    @abstractmethod
    def delete(self, path: str) -> bool:
        """
        Delete a single file.

        Returns:
            True if the file existed and was deleted, False otherwise
        """
        pass

    @abstractmethod
    def delete_directory(self, path: str) -> bool:
        """
        Delete a directory and everything below it.

        Returns:
            True if the directory existed and was deleted, False otherwise
        """
        pass

    @abstractmethod
    def size(self, path: str) -> Optional[int]:
        """Size of a file in bytes, or None if it does not exist."""
        pass
