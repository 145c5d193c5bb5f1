"""Long-running operation handle and error models."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..core.enums import OperationStatus, PollingStrategy
from ..core.exceptions import InvalidResumeTokenError

# Fields written into a resume token. Everything else is ephemeral.
_TOKEN_FIELDS = {"target_url", "status", "strategy", "method", "request_url", "final_url"}
# Outcome fields, written only once the status is terminal.
_OUTCOME_FIELDS = {"result", "error"}


class OperationError(BaseModel):
    """Fault reported by the service for a failed operation."""

    code: str = "OperationFailed"
    message: str = ""
    details: list[dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_body(cls, body: Any, default_message: str = "") -> OperationError:
        """Extract an error from a service response body.

        Accepts ``{"error": {"code", "message", "details"}}`` envelopes and
        bare ``{"code", "message"}`` objects; anything else produces a
        generic error carrying ``default_message``.
        """
        payload = body.get("error", body) if isinstance(body, dict) else None
        if not isinstance(payload, dict):
            return cls(message=default_message)
        details = payload.get("details")
        return cls(
            code=str(payload.get("code") or "OperationFailed"),
            message=str(payload.get("message") or default_message),
            details=details if isinstance(details, list) else [],
        )


class OperationHandle(BaseModel):
    """Opaque description of one in-flight server operation.

    Handles are immutable; LROPoller derives a new handle for every
    observed state. ``result`` and ``error`` are mutually exclusive and
    both stay empty until the status is terminal.

    Attributes:
        target_url: URL polled for status
        status: Last observed status
        strategy: How the status is read from poll responses
        method: HTTP verb of the initiating request
        request_url: URL of the initiating request
        final_url: URL fetched for the final result after success (optional)
        result: Final result (Succeeded only)
        error: Service fault (Failed only)
        retry_after: Latest server-suggested delay in seconds (not persisted)
        poll_count: Status requests issued by this process (not persisted)
    """

    target_url: str = Field(..., min_length=1)
    status: OperationStatus = OperationStatus.NOT_STARTED
    strategy: PollingStrategy
    method: str = "PUT"
    request_url: str = ""
    final_url: str | None = None
    result: Any = None
    error: OperationError | None = None
    retry_after: float | None = None
    poll_count: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_outcome(self) -> OperationHandle:
        if not self.status.is_terminal:
            if self.result is not None or self.error is not None:
                raise ValueError(f"result and error must be empty while {self.status.value}")
        elif self.status == OperationStatus.FAILED:
            if self.error is None:
                raise ValueError("error is required when status is Failed")
            if self.result is not None:
                raise ValueError("result must be empty when status is Failed")
        elif self.error is not None:
            raise ValueError(f"error must be empty when status is {self.status.value}")
        if self.status == OperationStatus.CANCELED and self.result is not None:
            raise ValueError("result must be empty when status is Canceled")
        return self

    @property
    def is_done(self) -> bool:
        """Whether the operation reached a terminal state."""
        return self.status.is_terminal

    def to_resume_token(self) -> str:
        """Serialize the polling state needed to continue after a restart.

        Terminal handles also carry their outcome so a resumed handle ends
        exactly as this one did, without another request.
        """
        fields = _TOKEN_FIELDS | _OUTCOME_FIELDS if self.is_done else _TOKEN_FIELDS
        return json.dumps(
            self.model_dump(mode="json", include=fields),
            separators=(",", ":"),
            sort_keys=True,
        )

    @classmethod
    def from_resume_token(cls, token: str) -> OperationHandle:
        """Rebuild a handle from ``to_resume_token`` output.

        A token captured in a terminal state restores that state and its
        outcome; LROPoller never polls such a handle again.

        Raises:
            InvalidResumeTokenError: If the token is not a valid handle payload
        """
        try:
            payload = json.loads(token)
        except (TypeError, ValueError) as exc:
            raise InvalidResumeTokenError("Resume token is not valid JSON", token=token) from exc
        if not isinstance(payload, dict):
            raise InvalidResumeTokenError("Resume token must be a JSON object", token=token)

        unknown = set(payload) - _TOKEN_FIELDS - _OUTCOME_FIELDS
        if unknown:
            raise InvalidResumeTokenError(
                f"Resume token has unknown fields: {sorted(unknown)}", token=token
            )

        try:
            return cls.model_validate(payload)
        except (ValueError, ValidationError) as exc:
            raise InvalidResumeTokenError(f"Invalid resume token: {exc}", token=token) from exc
