class StorageError(Exception):
    """Base class for record store failures."""

    def __init__(self, kind: str, key: str, message: str = "") -> None:
        self.kind = kind
        self.key = key
        super().__init__(message or f"{kind}/{key}")


class CorruptRecord(StorageError):
    """The record file exists but does not contain valid JSON."""


class StorageIOError(StorageError):
    """A file or directory operation failed for a reason other than absence."""


class InvalidKey(StorageError):
    """The key would not map to a single file inside its kind directory."""
