"""Tests for the CLI commands, including the interactive add and scan flows."""

import json
from datetime import date, timedelta
from unittest.mock import patch

import pytest

from freshtrack.camera import CameraCaptureController, StillImage
from freshtrack.cli import main
from freshtrack.db import ProductDB
from freshtrack.extraction import ExtractionBackend, ExtractionGateway
from freshtrack.models import ScanKind


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        f"""\
[database]
path = "{(tmp_path / 'freshtrack.db').as_posix()}"

[session]
path = "{(tmp_path / 'session.json').as_posix()}"
"""
    )
    return path


@pytest.fixture
def db(tmp_path):
    products = ProductDB(tmp_path / "freshtrack.db")
    yield products
    products.close()


def run(config_path, *args):
    main(["-c", str(config_path), *args])


def test_login_and_whoami(config_path, capsys):
    run(config_path, "login", "alice")
    run(config_path, "whoami")
    out = capsys.readouterr().out
    assert "Signed in as alice." in out
    assert out.strip().endswith("alice")


def test_logout(config_path, capsys):
    run(config_path, "login", "alice")
    run(config_path, "logout")
    run(config_path, "whoami")
    assert capsys.readouterr().out.strip().endswith("Not signed in.")


def test_list_requires_login(config_path, capsys):
    with pytest.raises(SystemExit) as exc:
        run(config_path, "list")
    assert exc.value.code == 1
    assert "logged in" in capsys.readouterr().err


def test_list_empty(config_path, capsys):
    run(config_path, "login", "alice")
    run(config_path, "list")
    assert "No products yet" in capsys.readouterr().out


def test_list_grouped(config_path, db, capsys):
    today = date.today()
    db.add_product("alice", "Yogurt", today - timedelta(days=1), category="Dairy")
    db.add_product("alice", "Rice", today + timedelta(days=30))
    db.add_product("bob", "Eggs", today)

    run(config_path, "login", "alice")
    run(config_path, "list")
    out = capsys.readouterr().out

    assert "Total 2" in out
    assert "Expired (1):" in out
    assert "Fresh (1):" in out
    assert "Categories: Dairy, Other" in out
    assert "Eggs" not in out


def test_list_json_filters(config_path, db, capsys):
    today = date.today()
    db.add_product("alice", "Yogurt", today - timedelta(days=1), category="Dairy")
    db.add_product("alice", "Rice", today + timedelta(days=30))

    run(config_path, "login", "alice")
    capsys.readouterr()
    run(config_path, "list", "--json", "--status", "expired")
    data = json.loads(capsys.readouterr().out)

    assert [p["name"] for p in data] == ["Yogurt"]
    assert data[0]["status"] == "Expired"


def test_delete(config_path, db, capsys):
    milk = db.add_product("alice", "Milk", date(2025, 1, 15))
    run(config_path, "login", "alice")
    run(config_path, "delete", str(milk.id))
    assert "Product deleted." in capsys.readouterr().out
    assert db.list_products("alice") == []


def test_delete_unknown(config_path, capsys):
    run(config_path, "login", "alice")
    with pytest.raises(SystemExit) as exc:
        run(config_path, "delete", "999")
    assert exc.value.code == 1
    assert "No product with ID 999" in capsys.readouterr().err


def test_cameras_none_found(config_path, capsys):
    with patch("freshtrack.cli.list_cameras", return_value=[]):
        run(config_path, "cameras")
    assert "No cameras found." in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit):
        main([])
    assert "freshtrack" in capsys.readouterr().out


class FakeDevice:
    def __init__(self):
        self.released = 0

    def snapshot(self, jpeg_quality: int = 80) -> StillImage:
        return StillImage(data=b"\xff\xd8jpeg", width=640, height=480)

    def release(self) -> None:
        self.released += 1


class ScriptedBackend(ExtractionBackend):
    def __init__(self, *replies):
        self.replies = list(replies)
        self.kinds: list[ScanKind] = []

    async def extract_text(self, image, kind):
        self.kinds.append(kind)
        return self.replies.pop(0)


@pytest.fixture
def answers(monkeypatch):
    """Feed scripted lines to input()."""
    queue: list[str] = []

    def fake_input(prompt=""):
        return queue.pop(0)

    monkeypatch.setattr("builtins.input", fake_input)
    return queue


@pytest.fixture
def devices(monkeypatch):
    opened: list[FakeDevice] = []

    def opener(constraints):
        device = FakeDevice()
        opened.append(device)
        return device

    monkeypatch.setattr(
        "freshtrack.cli._make_camera", lambda config: CameraCaptureController(opener)
    )
    return opened


def use_backend(monkeypatch, backend):
    monkeypatch.setattr(
        "freshtrack.cli.create_gateway", lambda config: ExtractionGateway(backend)
    )


def test_add_with_expiry_scan_round_trip(config_path, db, answers, devices, monkeypatch, capsys):
    backend = ScriptedBackend("2025-12-31")
    use_backend(monkeypatch, backend)
    run(config_path, "login", "alice")

    answers.extend([
        "1", "Milk",  # type the name
        "2", "1",  # pick Dairy
        "e",  # scan the expiry date
        "",  # capture
        "u",  # use photo
        "s",  # save the merged form
    ])
    run(config_path, "add")

    out = capsys.readouterr().out
    assert "Expiry date detected!" in out
    assert "Product added successfully!" in out
    assert backend.kinds == [ScanKind.EXPIRY_DATE]
    assert [d.released for d in devices] == [1]

    [product] = db.list_products("alice")
    assert product.name == "Milk"
    assert product.category == "Dairy"
    assert product.expiry_date == date(2025, 12, 31)
    assert answers == []


def test_add_not_found_then_back_keeps_typed_fields(
    config_path, db, answers, devices, monkeypatch, capsys
):
    use_backend(monkeypatch, ScriptedBackend("NOT_FOUND"))
    run(config_path, "login", "alice")

    answers.extend([
        "1", "Milk",
        "e",
        "",  # capture
        "u",  # nothing found; camera waits for the user
        "b",  # back to the form
        "3", "2026-01-05",  # type the date by hand
        "s",
    ])
    run(config_path, "add")

    assert "Could not find an expiry date" in capsys.readouterr().err
    assert len(devices) == 1
    [product] = db.list_products("alice")
    assert product.name == "Milk"
    assert product.expiry_date == date(2026, 1, 5)


def test_add_invalid_submit_stays_on_form(config_path, db, answers, capsys):
    run(config_path, "login", "alice")
    answers.extend(["s", "q"])
    run(config_path, "add")

    assert "Please enter a product name" in capsys.readouterr().err
    assert db.list_products("alice") == []


def test_add_requires_login(config_path, answers):
    with pytest.raises(SystemExit) as exc:
        run(config_path, "add")
    assert exc.value.code == 1


def test_scan_image_file(config_path, tmp_path, monkeypatch, capsys):
    backend = ScriptedBackend("Oat Milk")
    use_backend(monkeypatch, backend)
    image = tmp_path / "label.jpg"
    image.write_bytes(b"\xff\xd8jpeg")

    run(config_path, "scan", "product_name", "--image", str(image))

    assert capsys.readouterr().out.strip().endswith("Oat Milk")
    assert backend.kinds == [ScanKind.PRODUCT_NAME]


def test_scan_image_nothing_found(config_path, tmp_path, monkeypatch, capsys):
    use_backend(monkeypatch, ScriptedBackend("NOT_FOUND"))
    image = tmp_path / "label.jpg"
    image.write_bytes(b"\xff\xd8jpeg")

    with pytest.raises(SystemExit) as exc:
        run(config_path, "scan", "expiry_date", "--image", str(image))

    assert exc.value.code == 1
    assert "Could not find an expiry date" in capsys.readouterr().err


def test_scan_with_camera(config_path, answers, devices, monkeypatch, capsys):
    use_backend(monkeypatch, ScriptedBackend("2025-07-01"))
    answers.append("")

    run(config_path, "scan", "expiry_date")

    assert capsys.readouterr().out.strip().endswith("2025-07-01")
    assert [d.released for d in devices] == [1]
