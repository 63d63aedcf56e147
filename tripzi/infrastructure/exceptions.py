"""Errors from the storage backends and the Firestore REST layer.

The wipe service treats storage errors as best-effort (logged, counted as
unavailable) and Firestore errors as fatal to the wipe.
"""

from tripzi.domain.exceptions import TripziException


class StorageException(TripziException):
    pass


class StorageDeleteError(StorageException):
    """An object or prefix could not be removed."""

    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(
            f"Could not delete {file_path}",
            "STORAGE_DELETE_ERROR",
            {"file_path": file_path, "reason": reason},
        )


class StoragePermissionError(StorageException):
    """Object path rejected, e.g. one that escapes the local storage root."""

    def __init__(self, file_path: str, operation: str) -> None:
        super().__init__(
            f"{operation} refused for {file_path}",
            "STORAGE_PERMISSION_ERROR",
            {"file_path": file_path, "operation": operation},
        )


class FirestoreError(TripziException):
    pass


class BulkWriteError(FirestoreError):
    """A bulk flush had writes rejected with a status other than NOT_FOUND.

    failures holds (document path, gRPC code, message) per rejected write.
    """

    def __init__(self, failures: list[tuple[str, int, str]]) -> None:
        self.failures = failures
        super().__init__(
            f"{len(failures)} bulk write(s) failed",
            "BULK_WRITE_ERROR",
            {"failures": [{"path": p, "code": c, "message": m} for p, c, m in failures]},
        )
