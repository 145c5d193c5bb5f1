"""Long-running operation polling.

Architecture:
    The polling layer consists of:
    - definitions.py: Wait policies (ExponentialBackoff, FixedInterval)
    - strategies.py: Polling strategy detection and status interpretation
    - poller.py: LROPoller engine (begin, poll, wait_until_done, result)
    - telemetry.py: Structured logging

Usage:
    poller = LROPoller(transport)
    handle = await poller.begin("PUT", url, json_body=payload)
    token = handle.to_resume_token()        # persist if needed
    handle = await poller.wait_until_done(handle)
    resource = poller.result(handle)
"""

from __future__ import annotations

from .definitions import ExponentialBackoff, FixedInterval, WaitPolicy
from .poller import LROPoller
from .strategies import PollOutcome, handle_from_initial_response, interpret_poll_response

__all__ = [
    "ExponentialBackoff",
    "FixedInterval",
    "LROPoller",
    "PollOutcome",
    "WaitPolicy",
    "handle_from_initial_response",
    "interpret_poll_response",
]
