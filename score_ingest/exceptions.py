"""
Custom exception hierarchy for the score ingester.

Per-file failures (decode, storage) route a screenshot to the failed
directory; relocation failures are logged by the watcher and swallowed.
"""


class ScoreIngestError(Exception):
    """Base exception for all score ingester errors."""
    pass


class ImageDecodeError(ScoreIngestError):
    """Raised when a screenshot cannot be read or is not a decodable PNG."""
    pass


class TimestampParseError(ScoreIngestError):
    """Raised when a filename carries no valid yyyyMMddHHmmss timestamp."""
    pass


class OCRError(ScoreIngestError):
    """Raised when the OCR engine cannot be initialised."""
    pass


class FileOperationError(ScoreIngestError):
    """Raised when moving a file to its outcome directory fails."""
    pass


class SourceRemovalError(FileOperationError):
    """
    Raised when a cross-filesystem copy succeeded but the source could not
    be removed. The data is safe at the destination, just duplicated.
    """

    def __init__(self, message: str, destination=None):
        super().__init__(message)
        self.destination = destination


class DatabaseError(ScoreIngestError):
    """Raised when database operations fail."""
    pass


class WatcherError(ScoreIngestError):
    """Raised when the watch directory subscription cannot be established."""
    pass
