"""
Shared pytest fixtures for map asset builder tests.
"""

import json
from io import BytesIO
from pathlib import Path
from typing import Callable, Dict, List

import httpx
import pytest
from PIL import Image


def pytest_addoption(parser):
    """Add --full flag to run entire test suite"""
    parser.addoption(
        "--full",
        action="store_true",
        default=False,
        help="Run full test suite (including integration and slow tests)"
    )


def pytest_configure(config):
    """Configure test run based on flags"""
    if config.getoption("--full"):
        # Only clear default marker if no explicit -m flag was provided
        if config.option.markexpr == "smoke or (not integration and not slow)":
            config.option.markexpr = ""


# Project root
PROJECT_ROOT = Path(__file__).parent.parent

SIMPLE_SVG = (
    b'<svg xmlns="http://www.w3.org/2000/svg" width="100" height="50" viewBox="0 0 100 50">'
    b'<rect x="0" y="0" width="100" height="50" fill="#336699"/>'
    b'</svg>'
)


def make_png(width: int = 4, height: int = 4, color=(255, 0, 0, 255)) -> bytes:
    """Create PNG bytes of a solid-color image."""
    buffer = BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class RecordingTransport(httpx.MockTransport):
    """MockTransport that records every request it serves."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def assets_dir(tmp_path):
    """Return a clean assets directory for each test."""
    path = tmp_path / "assets"
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def png_factory():
    """Return the make_png helper."""
    return make_png


@pytest.fixture
def simple_svg():
    """A 100x50 SVG document."""
    return SIMPLE_SVG


@pytest.fixture
def cairosvg_available():
    """Skip when CairoSVG or the native cairo library is unavailable."""
    try:
        import cairosvg  # noqa: F401
    except (ImportError, OSError) as e:
        pytest.skip(f"CairoSVG not usable: {e}")


@pytest.fixture
def recording_transport():
    """Build a RecordingTransport from a handler function."""
    return RecordingTransport


@pytest.fixture
def upstream_groups() -> List[Dict]:
    """A small maps.json feed: one SVG map, one tile map, one group without an interactive variant."""
    return [
        {
            "normalizedName": "factory",
            "maps": [
                {"projection": "2D", "svgPath": "https://example.test/factory-2d.svg"},
                {
                    "projection": "interactive",
                    "svgPath": "https://example.test/factory.svg",
                    "coordinateRotation": 90,
                    "bounds": [[79, -64.5], [-65.5, 67.4]],
                    "author": "Shebuka",
                    "labels": [{"position": [10, 20], "text": "Gate 3", "rotation": "45"}],
                },
            ],
        },
        {
            "normalizedName": "streets-of-tarkov",
            "maps": [
                {
                    "projection": "interactive",
                    "tilePath": "https://example.test/streets/{z}/{x}/{y}.png",
                    "tileSize": 4,
                    "minZoom": 0,
                    "maxZoom": 2,
                    "coordinateRotation": "180",
                    "bounds": [[323, -317], [-280, 554]],
                    "layers": [
                        {
                            "name": "Underground",
                            "svgLayer": "Underground",
                            "extents": [{"height": [-100, 0], "bounds": [[[1, 2], [3, 4], "Metro"]]}],
                        }
                    ],
                },
            ],
        },
        {
            "normalizedName": "terminal",
            "maps": [{"projection": "3D"}],
        },
    ]


@pytest.fixture
def enrichment_payloads() -> Dict[str, Dict]:
    """GraphQL responses keyed by query operation name."""
    return {
        "MapNames": {"data": {"maps": [
            {"normalizedName": "factory", "name": "Factory"},
            {"normalizedName": "streets-of-tarkov", "name": "Streets of Tarkov"},
        ]}},
        "MapSpawns": {"data": {"maps": [
            {"normalizedName": "factory", "spawns": [
                {"position": {"x": 1, "y": 2, "z": 3}, "sides": ["pmc"], "categories": ["player"]},
                {"position": {"x": 4, "y": 5, "z": 6}, "sides": ["scav"], "categories": ["player"]},
            ]},
        ]}},
        "MapExtracts": {"data": {"maps": [
            {"normalizedName": "factory", "extracts": [
                {"name": "Gate 3", "faction": "pmc", "position": {"x": 10, "y": 0, "z": 20}},
                {"name": None, "faction": "scav", "position": None},
            ]},
        ]}},
    }


@pytest.fixture
def upstream_handler(upstream_groups, enrichment_payloads, simple_svg):
    """httpx handler that serves the feed, GraphQL, the SVG and 4x4 PNG tiles."""
    tile_png = make_png(4, 4, (0, 128, 0, 255))

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == "https://example.test/maps.json":
            return httpx.Response(200, json=upstream_groups)
        if url == "https://example.test/graphql":
            query = json.loads(request.content)["query"]
            for operation, payload in enrichment_payloads.items():
                if f"query {operation}" in query:
                    return httpx.Response(200, json=payload)
            return httpx.Response(400, json={"errors": [{"message": "unknown query"}]})
        if url == "https://example.test/factory.svg":
            return httpx.Response(200, content=simple_svg)
        if url.startswith("https://example.test/streets/"):
            return httpx.Response(200, content=tile_png)
        return httpx.Response(404)

    return handler
