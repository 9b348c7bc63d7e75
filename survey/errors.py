from __future__ import annotations

from typing import Optional


class SurveyError(Exception):
    """Base class for every error raised by the survey core."""


class RemoteError(SurveyError):
    """The remote spreadsheet endpoint could not deliver a usable answer."""


class TransportError(RemoteError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(RemoteError):
    pass


class ServerReportedError(RemoteError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.server_message = message


class DuplicateEntryError(SurveyError):
    def __init__(self, phone_number: str) -> None:
        super().__init__(f"phone number already recorded: {phone_number}")
        self.phone_number = phone_number


class InvalidEntryError(SurveyError):
    pass


class PersistenceError(SurveyError):
    pass


class PartialSubmitError(SurveyError):
    """Entry is cached locally but the remote write did not succeed."""

    def __init__(self, cause: RemoteError) -> None:
        super().__init__(str(cause))
        self.cause = cause


class NoDataError(SurveyError):
    pass
