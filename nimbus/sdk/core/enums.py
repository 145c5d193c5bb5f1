"""Core enumerations shared by the polling and streaming runtimes.

Architecture:
    This module defines the small set of standardized enums used throughout
    the library. Services report operation state with free-form strings
    ("InProgress", "Creating", "succeeded", ...); these enums normalize them
    so the poller can make terminal-state decisions without per-service code.

Design Decisions:
    - String enums: Values serialize directly into resume tokens
    - Case-insensitive mapping: Services disagree on casing and spelling
    - Unknown non-terminal states collapse to RUNNING

Key Types:
    - OperationStatus: Lifecycle state of a long-running operation
    - PollingStrategy: How the status of an operation is discovered

See Also:
    - OperationHandle: Carries an OperationStatus and PollingStrategy
    - LROPoller: Drives status transitions
"""

from __future__ import annotations

from enum import Enum

_TERMINAL_VALUES = {"Succeeded", "Failed", "Canceled"}

_SERVICE_STATUS_MAP = {
    "notstarted": "NotStarted",
    "succeeded": "Succeeded",
    "failed": "Failed",
    "canceled": "Canceled",
    "cancelled": "Canceled",
}


class OperationStatus(str, Enum):
    """Lifecycle state of a long-running operation.

    Architecture:
        NOT_STARTED and RUNNING are the only non-terminal states. Once a
        handle reaches a terminal state the poller never issues another
        status request for it.
    """

    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    CANCELED = "Canceled"

    @property
    def is_terminal(self) -> bool:
        """Whether no further polling can change this status."""
        return self.value in _TERMINAL_VALUES

    @classmethod
    def from_service(cls, value: str | None) -> OperationStatus:
        """Map a service-reported status string to an OperationStatus.

        Args:
            value: Raw status string (e.g., "InProgress", "succeeded")

        Returns:
            Normalized status. Unknown or missing values map to RUNNING.
        """
        if not value:
            return cls.RUNNING
        mapped = _SERVICE_STATUS_MAP.get(str(value).strip().lower())
        if mapped is None:
            return cls.RUNNING
        return cls(mapped)


class PollingStrategy(str, Enum):
    """How the status of a long-running operation is discovered."""

    # Azure-AsyncOperation / Operation-Location header, status in body "status"
    OPERATION_LOCATION = "operation-location"
    # Location header, status from the HTTP status code
    LOCATION = "location"
    # Resource body, status in properties.provisioningState
    BODY = "body"
    # Initial response already terminal
    NONE = "none"
