"""Two-view navigation with a one-shot channel for scan results."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Generic, TypeVar

from .models import ScanKind, ScanRequest, ScanResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class View(str, Enum):
    FORM = "form"
    SCANNER = "scanner"


class OneShotChannel(Generic[T]):
    """A queue holding at most one message, drained exactly once."""

    def __init__(self) -> None:
        self._message: T | None = None

    @property
    def pending(self) -> bool:
        return self._message is not None

    def post(self, message: T) -> None:
        self._message = message

    def take(self) -> T | None:
        message, self._message = self._message, None
        return message

    def discard(self) -> None:
        self._message = None


class ScanInProgress(RuntimeError):
    pass


class Navigator:
    """Tracks the current view and carries scan parameters between views.

    Opening the scanner is a full takeover: the form is unmounted, so only
    one scan round trip can be in flight.
    """

    def __init__(self) -> None:
        self._view = View.FORM
        self._request: ScanRequest | None = None
        self._results: OneShotChannel[ScanResult] = OneShotChannel()

    @property
    def current(self) -> View:
        return self._view

    @property
    def scan_request(self) -> ScanRequest | None:
        return self._request

    @property
    def has_scan_result(self) -> bool:
        return self._results.pending

    def open_scanner(self, kind: ScanKind) -> ScanRequest:
        if self._view is View.SCANNER:
            raise ScanInProgress("A scan is already in progress")
        self._request = ScanRequest(kind=ScanKind(kind))
        self._results.discard()
        self._view = View.SCANNER
        logger.debug("Navigated to scanner (%s)", self._request.kind.value)
        return self._request

    def return_to_form(self, result: ScanResult | None = None) -> None:
        self._request = None
        if result is not None:
            self._results.post(result)
        self._view = View.FORM
        logger.debug("Navigated to form (result=%s)", result is not None)

    def take_scan_result(self) -> ScanResult | None:
        """Return the pending scan result once; later calls return None."""
        return self._results.take()
