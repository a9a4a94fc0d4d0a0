"""FreshTrack: perishable product tracking with label scanning."""

from .auth import UserSession
from .camera import (
    CameraCaptureController,
    CameraConstraints,
    CaptureState,
    StillImage,
)
from .config import (
    CameraConfig,
    DatabaseConfig,
    ExtractionConfig,
    FreshTrackConfig,
    load_config,
)
from .draft import DraftStateCoordinator
from .extraction import ExtractionBackend, ExtractionGateway, create_backend
from .form import ProductFormController
from .freshness import Freshness, freshness_status
from .models import CATEGORIES, Product, ProductFields, ScanKind, ScanRequest, ScanResult
from .navigation import Navigator, View
from .scanner import ScanSession
from .storage import SessionStorage

__all__ = [
    "CameraCaptureController",
    "CameraConstraints",
    "CaptureState",
    "StillImage",
    "ExtractionBackend",
    "ExtractionGateway",
    "create_backend",
    "DraftStateCoordinator",
    "SessionStorage",
    "ProductFormController",
    "ScanSession",
    "Navigator",
    "View",
    "UserSession",
    "Freshness",
    "freshness_status",
    "CATEGORIES",
    "Product",
    "ProductFields",
    "ScanKind",
    "ScanRequest",
    "ScanResult",
    "FreshTrackConfig",
    "CameraConfig",
    "ExtractionConfig",
    "DatabaseConfig",
    "load_config",
]
