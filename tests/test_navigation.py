"""Tests for view navigation and the one-shot scan result channel."""

import pytest

from freshtrack.models import ScanKind, ScanResult
from freshtrack.navigation import Navigator, OneShotChannel, ScanInProgress, View


def test_channel_is_drained_once():
    channel = OneShotChannel()
    channel.post("hello")
    assert channel.pending
    assert channel.take() == "hello"
    assert channel.take() is None
    assert not channel.pending


def test_channel_holds_at_most_one_message():
    channel = OneShotChannel()
    channel.post("first")
    channel.post("second")
    assert channel.take() == "second"
    assert channel.take() is None


def test_navigator_starts_on_form():
    nav = Navigator()
    assert nav.current is View.FORM
    assert nav.scan_request is None


def test_open_scanner_carries_request():
    nav = Navigator()
    request = nav.open_scanner(ScanKind.EXPIRY_DATE)
    assert nav.current is View.SCANNER
    assert nav.scan_request == request
    assert request.kind is ScanKind.EXPIRY_DATE


def test_second_scan_is_refused():
    nav = Navigator()
    nav.open_scanner("product_name")
    with pytest.raises(ScanInProgress):
        nav.open_scanner(ScanKind.EXPIRY_DATE)


def test_return_with_result_is_read_once():
    nav = Navigator()
    nav.open_scanner(ScanKind.PRODUCT_NAME)
    result = ScanResult(ScanKind.PRODUCT_NAME, "Milk")
    nav.return_to_form(result)

    assert nav.current is View.FORM
    assert nav.scan_request is None
    assert nav.take_scan_result() == result
    assert nav.take_scan_result() is None


def test_return_without_result():
    nav = Navigator()
    nav.open_scanner(ScanKind.PRODUCT_NAME)
    nav.return_to_form()
    assert nav.current is View.FORM
    assert not nav.has_scan_result


def test_opening_scanner_discards_unconsumed_result():
    nav = Navigator()
    nav.open_scanner(ScanKind.PRODUCT_NAME)
    nav.return_to_form(ScanResult(ScanKind.PRODUCT_NAME, "Milk"))
    nav.open_scanner(ScanKind.EXPIRY_DATE)
    nav.return_to_form()
    assert nav.take_scan_result() is None
