"""CLI entry point for FreshTrack."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from .auth import UserSession
from .camera import (
    CameraCaptureController,
    CameraError,
    CaptureState,
    StillImage,
    Unsupported,
    list_cameras,
)
from .config import FreshTrackConfig, load_config
from .db import PersistenceError, ProductDB
from .draft import DraftStateCoordinator
from .extraction import ExtractionError, ExtractionGateway, create_gateway
from .form import ProductFormController, SubmitError
from .freshness import (
    Freshness,
    categories_in_use,
    filter_products,
    group_by_status,
    status_label,
    summarize,
)
from .models import CATEGORIES, ScanKind
from .navigation import Navigator, View
from .notify import ConsoleNotifier
from .scanner import ScanSession

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="freshtrack",
        description="FreshTrack: track perishable products and their expiry dates",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="path to a TOML config file",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    login_parser = sub.add_parser("login", help="sign in as a user")
    login_parser.add_argument("user", type=str, help="user identifier")
    sub.add_parser("logout", help="sign out")
    sub.add_parser("whoami", help="show the signed-in user")

    sub.add_parser("cameras", help="list available cameras")

    sub.add_parser("add", help="add a product (with optional label scanning)")

    list_parser = sub.add_parser("list", help="list products by freshness")
    list_parser.add_argument(
        "--status", choices=["all"] + [s.value for s in Freshness], default="all"
    )
    list_parser.add_argument("--category", type=str, default="all")
    list_parser.add_argument("--search", type=str, default="")
    list_parser.add_argument("--json", action="store_true", help="output JSON")

    delete_parser = sub.add_parser("delete", help="delete a product")
    delete_parser.add_argument("id", type=int, help="product ID")

    scan_parser = sub.add_parser("scan", help="extract a name or expiry date from a photo")
    scan_parser.add_argument("kind", choices=[k.value for k in ScanKind])
    scan_parser.add_argument("--image", type=str, default=None, help="use an existing image file")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    config = load_config(args.config)
    session = UserSession(config.session.path)

    match args.command:
        case "login":
            _cmd_login(session, args)
        case "logout":
            session.sign_out()
            print("Signed out.")
        case "whoami":
            _cmd_whoami(session)
        case "cameras":
            _cmd_cameras()
        case "add":
            _require_user(session)
            asyncio.run(_cmd_add(config, session))
        case "list":
            _cmd_list(config, session, args)
        case "delete":
            _cmd_delete(config, session, args)
        case "scan":
            if asyncio.run(_cmd_scan(config, args)):
                sys.exit(1)


def _require_user(session: UserSession) -> str:
    user_id = session.current_user()
    if user_id is None:
        print("You must be logged in: freshtrack login USER", file=sys.stderr)
        sys.exit(1)
    return user_id


def _cmd_login(session: UserSession, args) -> None:
    try:
        session.sign_in(args.user)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    print(f"Signed in as {args.user.strip()}.")


def _cmd_whoami(session: UserSession) -> None:
    user_id = session.current_user()
    print(user_id if user_id else "Not signed in.")


def _cmd_cameras() -> None:
    try:
        cameras = list_cameras()
    except Unsupported as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    if not cameras:
        print("No cameras found.")
        return
    print(f"Available cameras: {len(cameras)}")
    for idx in cameras:
        print(f"  camera {idx}")


def _cmd_list(config: FreshTrackConfig, session: UserSession, args) -> None:
    user_id = _require_user(session)
    db = ProductDB(config.database.path)
    try:
        products = db.list_products(user_id)
    except PersistenceError as e:
        print(f"Failed to load products: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()

    window = config.dashboard.expiring_days
    shown = filter_products(
        products,
        search=args.search,
        category=args.category,
        status=args.status,
        window=window,
    )

    if args.json:
        data = [
            {**p.to_dict(), "status": status_label(p.expiry_date, window=window)}
            for p in shown
        ]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    stats = summarize(products, window=window)
    print(
        f"Total {stats.total}  |  Expired {stats.expired}  |  "
        f"Expiring {stats.expiring}  |  Fresh {stats.fresh}"
    )
    if products:
        print("Categories: " + ", ".join(categories_in_use(products)))
    if not shown:
        if not products:
            print("No products yet. Add your first item with: freshtrack add")
        else:
            print("No products found. Try adjusting your search or filters.")
        return

    for status, items in group_by_status(shown, window=window).items():
        if not items:
            continue
        print(f"\n{status.value.capitalize()} ({len(items)}):")
        for p in items:
            label = status_label(p.expiry_date, window=window)
            print(
                f"  [{p.id}] {p.name:<24} {p.category:<15} "
                f"{p.expiry_date:%b %d, %Y}  {label}"
            )
            if p.notes:
                print(f"       {p.notes}")


def _cmd_delete(config: FreshTrackConfig, session: UserSession, args) -> None:
    user_id = _require_user(session)
    db = ProductDB(config.database.path)
    try:
        deleted = db.delete_product(user_id, args.id)
    except PersistenceError as e:
        print(f"Failed to delete product: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()
    if not deleted:
        print(f"No product with ID {args.id}.", file=sys.stderr)
        sys.exit(1)
    print("Product deleted.")


def _make_camera(config: FreshTrackConfig) -> CameraCaptureController:
    return CameraCaptureController(
        camera_index=config.camera.index,
        width=config.camera.width,
        height=config.camera.height,
        jpeg_quality=config.camera.jpeg_quality,
    )


async def _cmd_scan(config: FreshTrackConfig, args) -> int:
    kind = ScanKind(args.kind)
    if args.image:
        still = StillImage.from_file(args.image)
    else:
        async with _make_camera(config) as camera:
            try:
                await camera.start()
            except CameraError as e:
                print(f"Could not access camera: {e}", file=sys.stderr)
                return 1
            input("Press Enter to capture... ")
            still = camera.capture()
        if still is None:
            print("No frame captured.", file=sys.stderr)
            return 1

    gateway = create_gateway(config)
    print("Processing...")
    try:
        text = await gateway.extract(still, kind)
    except ExtractionError as e:
        print(str(e), file=sys.stderr)
        return 1
    print(text)
    return 0


# ---------------------------------------------------------------------------
# Interactive add flow
# ---------------------------------------------------------------------------

_FORM_MENU = """\
  1) name  2) category  3) expiry date  4) notes
  n) scan product name   e) scan expiry date
  s) save   q) cancel"""


async def _cmd_add(config: FreshTrackConfig, session: UserSession) -> None:
    db = ProductDB(config.database.path)
    navigator = Navigator()
    drafts = DraftStateCoordinator(session.storage)
    notifier = ConsoleNotifier()
    gateway: ExtractionGateway | None = None

    try:
        while True:
            if navigator.current is View.FORM:
                form = ProductFormController(session, db, drafts, navigator, notifier)
                form.mount()
                if _run_form(form):
                    return
            else:
                if gateway is None:
                    gateway = create_gateway(config)
                request = navigator.scan_request
                scan = ScanSession(
                    request, _make_camera(config), gateway, navigator, notifier
                )
                async with scan:
                    await _run_scanner(scan)
    finally:
        db.close()


def _run_form(form: ProductFormController) -> bool:
    """Prompt until the user saves, cancels or opens the scanner.

    Returns True when the add flow is over.
    """
    while True:
        f = form.fields
        print("\nAdd New Product")
        print(f"  Name:     {f.name or '-'}")
        print(f"  Category: {f.category}")
        print(f"  Expiry:   {f.expiry_date or '-'}")
        print(f"  Notes:    {f.notes or '-'}")
        print(_FORM_MENU)
        choice = input("> ").strip().lower()

        match choice:
            case "1":
                form.set_field("name", input("Product name: "))
            case "2":
                for i, cat in enumerate(CATEGORIES, 1):
                    print(f"  {i:>2}) {cat}")
                picked = input("Category number: ").strip()
                if picked.isdigit() and 1 <= int(picked) <= len(CATEGORIES):
                    form.set_field("category", CATEGORIES[int(picked) - 1])
                else:
                    print("Invalid category.")
            case "3":
                form.set_field("expiry_date", input("Expiry date (YYYY-MM-DD): ").strip())
            case "4":
                form.set_field("notes", input("Notes: "))
            case "n":
                form.handle_scan(ScanKind.PRODUCT_NAME)
                return False
            case "e":
                form.handle_scan(ScanKind.EXPIRY_DATE)
                return False
            case "s":
                try:
                    form.submit()
                except (SubmitError, PersistenceError):
                    continue
                return True
            case "q":
                return True


async def _run_scanner(scan: ScanSession) -> None:
    print(f"\nScan {scan.request.kind.label}")
    print(scan.instructions)
    print("Starting camera...")
    await scan.open()

    while not scan.closed:
        state = scan.camera_state
        if state is CaptureState.ACTIVE:
            choice = input("[Enter] capture  [b] back: ").strip().lower()
            if choice == "b":
                scan.close()
            else:
                scan.capture()
        elif state is CaptureState.CAPTURED:
            choice = input("[u] use photo  [r] retake  [b] back: ").strip().lower()
            if choice == "u":
                print("Processing...")
                await scan.use_photo()
            elif choice == "r":
                await scan.retake()
            elif choice == "b":
                scan.close()
        else:
            choice = input("[t] try again  [b] back: ").strip().lower()
            if choice == "t":
                await scan.retry_camera()
            elif choice == "b":
                scan.close()
