"""Tests for the end-to-end bundle build with mocked upstream services."""

from unittest.mock import patch

import httpx
import pytest
from PIL import Image


def _source(http):
    from maps.source_client import SourceDataClient

    return SourceDataClient(
        http,
        maps_json_url="https://example.test/maps.json",
        graphql_url="https://example.test/graphql",
    )


def _asset_requests(transport):
    return [
        str(r.url) for r in transport.requests
        if str(r.url).endswith(".svg") or "/streets/" in str(r.url)
    ]


@pytest.mark.smoke
class TestBuildBundle:

    @pytest.mark.asyncio
    async def test_full_pipeline(self, assets_dir, recording_transport, upstream_handler):
        from bundle.orchestrate import build_bundle
        from bundle.writer import load_bundle

        transport = recording_transport(upstream_handler)

        with patch("rendering.svg_renderer.rasterize_svg", return_value=Image.new("RGBA", (200, 100))):
            async with httpx.AsyncClient(transport=transport) as http:
                summary = await build_bundle(assets_dir=assets_dir, http=http, source=_source(http))

        assert summary.skipped == 1
        assert summary.bundle_path == assets_dir / "maps.json"
        assert [m.normalized_name for m in summary.maps] == ["factory", "streets-of-tarkov"]

        factory, streets = summary.maps
        assert factory.name == "Factory"
        assert factory.image_path == "maps/factory.png"
        assert factory.image_size == (100.0, 50.0)
        assert factory.pixel_size == (200.0, 100.0)
        assert factory.logical_size == pytest.approx((144.5, 131.9))
        assert factory.coordinate_rotation == 90.0
        assert factory.labels[0].rotation == 45.0
        assert [s.position for s in factory.spawns] == [(1.0, 2.0, 3.0)]
        assert [e.name for e in factory.extracts] == ["Gate 3"]

        # maxZoom 2 minus the default offset of 2 is a single tile
        assert streets.coordinate_rotation == 180.0
        assert streets.image_size == (4.0, 4.0)
        assert streets.pixel_size == (4.0, 4.0)
        assert streets.logical_size == (603.0, 871.0)
        assert streets.spawns is None
        assert streets.layers[0].extents[0].bounds[0].name == "Metro"

        assert _asset_requests(transport) == [
            "https://example.test/factory.svg",
            "https://example.test/streets/0/0/0.png",
        ]
        assert (assets_dir / "maps" / "factory.png").exists()
        assert (assets_dir / "maps" / "streets-of-tarkov.png").exists()
        assert load_bundle(summary.bundle_path) == summary.maps

    @pytest.mark.asyncio
    async def test_second_run_uses_cache(self, assets_dir, recording_transport, upstream_handler):
        from bundle.orchestrate import build_bundle

        with patch("rendering.svg_renderer.rasterize_svg", return_value=Image.new("RGBA", (200, 100))):
            first_transport = recording_transport(upstream_handler)
            async with httpx.AsyncClient(transport=first_transport) as http:
                first = await build_bundle(assets_dir=assets_dir, http=http, source=_source(http))

            second_transport = recording_transport(upstream_handler)
            async with httpx.AsyncClient(transport=second_transport) as http:
                second = await build_bundle(assets_dir=assets_dir, http=http, source=_source(http))

        assert _asset_requests(first_transport)
        assert _asset_requests(second_transport) == []
        assert [m.pixel_size for m in second.maps] == [m.pixel_size for m in first.maps]
        assert [m.image_size for m in second.maps] == [m.image_size for m in first.maps]
        assert [m.logical_size for m in second.maps] == [m.logical_size for m in first.maps]

    @pytest.mark.asyncio
    async def test_force_rebuilds_cached_rasters(self, assets_dir, recording_transport, upstream_handler):
        from bundle.orchestrate import build_bundle

        with patch("rendering.svg_renderer.rasterize_svg", return_value=Image.new("RGBA", (200, 100))):
            async with httpx.AsyncClient(transport=recording_transport(upstream_handler)) as http:
                await build_bundle(assets_dir=assets_dir, http=http, source=_source(http))

            transport = recording_transport(upstream_handler)
            async with httpx.AsyncClient(transport=transport) as http:
                await build_bundle(assets_dir=assets_dir, force=True, http=http, source=_source(http))

        assert len(_asset_requests(transport)) == 2

    @pytest.mark.asyncio
    async def test_missing_display_name_aborts(
        self, assets_dir, recording_transport, upstream_handler, enrichment_payloads
    ):
        from bundle.orchestrate import build_bundle
        from exceptions import MissingMapNameError

        enrichment_payloads["MapNames"]["data"]["maps"] = [
            {"normalizedName": "factory", "name": "Factory"},
        ]

        with patch("rendering.svg_renderer.rasterize_svg", return_value=Image.new("RGBA", (200, 100))):
            async with httpx.AsyncClient(transport=recording_transport(upstream_handler)) as http:
                with pytest.raises(MissingMapNameError) as exc_info:
                    await build_bundle(assets_dir=assets_dir, http=http, source=_source(http))

        assert exc_info.value.map_name == "streets-of-tarkov"
        assert not (assets_dir / "maps.json").exists()

    @pytest.mark.asyncio
    async def test_malformed_enrichment_is_a_build_error(
        self, assets_dir, recording_transport, upstream_handler, enrichment_payloads
    ):
        from bundle.orchestrate import build_bundle
        from exceptions import MapAssetError

        spawns = enrichment_payloads["MapSpawns"]["data"]["maps"][0]["spawns"]
        spawns[0]["position"] = {"x": 1, "y": 2}

        async with httpx.AsyncClient(transport=recording_transport(upstream_handler)) as http:
            with pytest.raises(MapAssetError) as exc_info:
                await build_bundle(assets_dir=assets_dir, http=http, source=_source(http))

        assert "factory" in str(exc_info.value)
        assert not (assets_dir / "maps.json").exists()

    @pytest.mark.asyncio
    async def test_non_object_group_is_a_build_error(self, assets_dir, upstream_handler, upstream_groups):
        from bundle.orchestrate import build_bundle
        from exceptions import FetchError

        upstream_groups.append("bogus")

        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream_handler)) as http:
            with pytest.raises(FetchError):
                await build_bundle(assets_dir=assets_dir, http=http, source=_source(http))

        assert not (assets_dir / "maps.json").exists()

    @pytest.mark.asyncio
    async def test_failed_asset_aborts_without_bundle(self, assets_dir, upstream_handler):
        from bundle.orchestrate import build_bundle
        from exceptions import HttpStatusError

        def handler(request):
            if "/streets/" in str(request.url):
                return httpx.Response(502)
            return upstream_handler(request)

        with patch("rendering.svg_renderer.rasterize_svg", return_value=Image.new("RGBA", (200, 100))):
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
                with pytest.raises(HttpStatusError):
                    await build_bundle(assets_dir=assets_dir, http=http, source=_source(http))

        assert not (assets_dir / "maps.json").exists()
        assert not (assets_dir / "maps" / "streets-of-tarkov.png").exists()

    @pytest.mark.asyncio
    async def test_negative_zoom_offset_rejected(self, assets_dir, recording_transport, upstream_handler):
        from bundle.orchestrate import build_bundle
        from exceptions import ConfigurationError

        transport = recording_transport(upstream_handler)

        async with httpx.AsyncClient(transport=transport) as http:
            with pytest.raises(ConfigurationError) as exc_info:
                await build_bundle(assets_dir=assets_dir, tile_zoom_offset=-1, http=http, source=_source(http))

        assert exc_info.value.key == "tile_zoom_offset"
        assert transport.requests == []


@pytest.mark.unit
class TestBuildGroup:

    @pytest.mark.asyncio
    async def test_group_without_interactive_variant(self, assets_dir):
        from bundle.orchestrate import build_group
        from rendering.cache import RasterCache

        group = {"normalizedName": "terminal", "maps": [{"projection": "3D"}]}

        record = await build_group(None, group, {}, {}, {}, RasterCache(assets_dir), 2)

        assert record is None

    @pytest.mark.asyncio
    async def test_missing_source_fails_before_name_lookup(self, assets_dir):
        from bundle.orchestrate import build_group
        from exceptions import MissingMapSourceError
        from rendering.cache import RasterCache

        group = {"normalizedName": "labs", "maps": [{"projection": "interactive"}]}

        with pytest.raises(MissingMapSourceError):
            await build_group(None, group, {}, {}, {}, RasterCache(assets_dir), 2)
