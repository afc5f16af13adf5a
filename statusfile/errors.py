"""Exceptions raised while reading or writing status files."""


class StatusFileError(Exception):
    """Base class for status file problems that the uploader can act on."""


class SchemaMismatchError(StatusFileError):
    """The header row does not carry exactly the expected column names."""

    def __init__(self, message: str, expected: list[str], found: list[str]):
        super().__init__(message)
        self.expected = expected
        self.found = found


class InvalidStatusError(StatusFileError):
    """A flagged row carries a status that is not one of the canonical values."""

    def __init__(self, message: str, value: str):
        super().__init__(message)
        self.value = value


class NoValidUpdatesError(StatusFileError):
    """The file is well formed but no row qualifies as an update."""

    def __init__(self, message: str, hints: list[str]):
        super().__init__(message)
        self.hints = hints


class WriteFailureError(StatusFileError):
    """Building or saving the status file failed."""
