"""Exceptions raised across the tracker, each knowing how it is reported over HTTP."""

from typing import Any, Dict, List, Optional


class JobHuntError(Exception):
    """Base error. `status_code` and `to_dict()` drive the JSON error response."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class BadRequestError(JobHuntError):
    status_code = 400


class NotFoundError(JobHuntError):
    status_code = 404


class SyncNotConfiguredError(JobHuntError):
    """No sync record for the owner, or sync is switched off."""

    status_code = 400


class SyncCredentialError(JobHuntError):
    """The refresh credential could not be exchanged; the user must reconnect."""

    status_code = 401


class MailboxError(JobHuntError):
    """A mailbox-wide call (labels, message listing) failed."""

    status_code = 500


class MessageFetchError(JobHuntError):
    """A single message could not be fetched. Skipped by the sync run."""

    def __init__(self, message_id: str, details: Optional[Any] = None):
        self.message_id = message_id
        super().__init__(f"Failed to fetch message {message_id}", details)


class LabelConfigurationError(JobHuntError):
    """
    None of the expected labels exist in the mailbox.

    Attributes:
        expected: Logical label names the resolver looked for
        available: Up to 50 label names actually present in the mailbox
    """

    status_code = 400

    def __init__(self, expected: List[str], available: List[str]):
        self.expected = expected
        self.available = available[:50]
        super().__init__(
            "No job-hunt labels found in mailbox",
            {"expectedLabels": self.expected, "availableLabels": self.available},
        )


class DocumentError(JobHuntError):
    """Text could not be extracted from an uploaded or downloaded document."""


class OracleRequestError(JobHuntError):
    """The LLM service call itself failed."""


class OracleResponseError(JobHuntError):
    """The LLM answered, but not with a JSON object."""

    def __init__(self, message: str, raw_response: str):
        self.raw_response = raw_response
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "rawResponse": self.raw_response}


class UnauthorizedError(JobHuntError):
    status_code = 401


class StoreError(JobHuntError):
    """The spreadsheet backing the store rejected a read or write (quota, permissions, outage)."""
