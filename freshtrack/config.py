"""TOML configuration loader for FreshTrack."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class CameraConfig:
    index: int = 0
    width: int = 1280
    height: int = 720
    jpeg_quality: int = 80


@dataclass
class ClaudeExtractionConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class GeminiExtractionConfig:
    api_key: str = ""
    model: str = "gemini-2.5-flash"


@dataclass
class EndpointExtractionConfig:
    url: str = ""
    api_key: str = ""


@dataclass
class ExtractionConfig:
    backend: str = "claude"
    claude: ClaudeExtractionConfig = field(default_factory=ClaudeExtractionConfig)
    gemini: GeminiExtractionConfig = field(default_factory=GeminiExtractionConfig)
    endpoint: EndpointExtractionConfig = field(
        default_factory=EndpointExtractionConfig
    )


@dataclass
class DatabaseConfig:
    path: str = "~/.config/freshtrack/freshtrack.db"


@dataclass
class SessionConfig:
    path: str = "~/.config/freshtrack/session.json"


@dataclass
class DashboardConfig:
    expiring_days: int = 3


@dataclass
class FreshTrackConfig:
    camera: CameraConfig = field(default_factory=CameraConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)


def load_config(path: str | Path | None = None) -> FreshTrackConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cam = raw.get("camera", {})
    ext = raw.get("extraction", {})
    dbs = raw.get("database", {})
    ses = raw.get("session", {})
    dsh = raw.get("dashboard", {})

    claude_cfg = ext.get("claude", {})
    gemini_cfg = ext.get("gemini", {})
    endpoint_cfg = ext.get("endpoint", {})

    # Resolve API keys: config file → environment variable
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )
    endpoint_api_key = endpoint_cfg.get("api_key", "") or os.environ.get(
        "FRESHTRACK_EXTRACT_API_KEY", ""
    )
    endpoint_url = endpoint_cfg.get("url", "") or os.environ.get(
        "FRESHTRACK_EXTRACT_URL", ""
    )

    return FreshTrackConfig(
        camera=CameraConfig(
            index=cam.get("index", 0),
            width=cam.get("width", 1280),
            height=cam.get("height", 720),
            jpeg_quality=cam.get("jpeg_quality", 80),
        ),
        extraction=ExtractionConfig(
            backend=ext.get("backend", "claude"),
            claude=ClaudeExtractionConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
            gemini=GeminiExtractionConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.5-flash"),
            ),
            endpoint=EndpointExtractionConfig(
                url=endpoint_url,
                api_key=endpoint_api_key,
            ),
        ),
        database=DatabaseConfig(
            path=dbs.get("path", "~/.config/freshtrack/freshtrack.db"),
        ),
        session=SessionConfig(
            path=ses.get("path", "~/.config/freshtrack/session.json"),
        ),
        dashboard=DashboardConfig(
            expiring_days=dsh.get("expiring_days", 3),
        ),
    )
