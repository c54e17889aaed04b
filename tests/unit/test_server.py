"""
Unit tests for the HTTP surface of the contour tile server.
"""

import sys
import unittest
from pathlib import Path
from unittest.mock import AsyncMock

import mapbox_vector_tile
import numpy as np
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).parent.parent.parent / "src"))

from dem_contours.data_ingestion.tileset_registry import TilesetRegistry
from dem_contours.errors import EncodingFault
from dem_contours.monitoring.metrics import MetricsCollector
from dem_contours.server import MVT_CONTENT_TYPE, build_tilejson, create_app
from dem_contours.utils.config import Config

from raster_fixtures import InMemorySource, global_ramp_source, png_bytes, terrarium_pixels


class BrokenMetadataSource(InMemorySource):
    @property
    def metadata(self):
        raise OSError("metadata block unreadable")


class TestContourTileServer(unittest.TestCase):
    """Test suite for the FastAPI app."""

    def setUp(self):
        """Set up test fixtures."""
        flat = png_bytes(terrarium_pixels(np.full((8, 8), 100.0)))
        self.sources = {
            "terrain": global_ramp_source(),
            "flat": InMemorySource({}, name="flat", default=flat),
        }
        self.registry = TilesetRegistry(self.sources, directory="/data/pmtiles")
        self.metrics = MetricsCollector()
        self.app = create_app(Config(), registry=self.registry, metrics=self.metrics)

    def test_contour_tile(self):
        """A tile with contours is served as protobuf."""
        with TestClient(self.app) as client:
            response = client.get("/terrain/2/1/1.mvt", headers={"Origin": "http://map.example.com"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["content-type"], MVT_CONTENT_TYPE)
        self.assertEqual(response.headers["access-control-allow-origin"], "*")

        decoded = mapbox_vector_tile.decode(response.content, default_options={"y_coord_down": True})
        self.assertEqual(len(decoded["contours"]["features"]), 9)

    def test_empty_tile(self):
        """Tiles without contours answer 204 with no body."""
        with TestClient(self.app) as client:
            response = client.get("/flat/3/2/2.mvt")

        self.assertEqual(response.status_code, 204)
        self.assertEqual(response.content, b"")

    def test_tile_not_found(self):
        """A neighborhood without any source tile is a 404."""
        with TestClient(self.app) as client:
            response = client.get("/terrain/9/300/300.mvt")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"detail": "Tile not found"})

    def test_unknown_tileset(self):
        """Unknown tilesets are a 404 listing what exists."""
        with TestClient(self.app) as client:
            response = client.get("/mars/0/0/0.mvt")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {
            "error": "Tileset not found",
            "tileset": "mars",
            "available": ["terrain", "flat"]
        })

    def test_invalid_address(self):
        """Coordinates outside the zoom level are rejected."""
        with TestClient(self.app) as client:
            for path in ("/terrain/2/4/0.mvt", "/terrain/2/0/-1.mvt"):
                with self.subTest(path=path):
                    self.assertEqual(client.get(path).status_code, 400)

    def test_non_integer_address(self):
        with TestClient(self.app) as client:
            response = client.get("/terrain/2/a/0.mvt")
        self.assertEqual(response.status_code, 422)

    def test_generation_error(self):
        """Unexpected failures are a 500 and are counted."""
        with TestClient(self.app) as client:
            self.app.state.generator.generate_tile = AsyncMock(side_effect=EncodingFault("bad ring"))
            response = client.get("/terrain/2/1/1.mvt")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"detail": "Internal server error"})
        self.assertEqual(
            self.metrics.get_sample_value('contour_tiles_total', {'tileset': 'terrain', 'status': 'error'}),
            1.0
        )

    def test_tilejson(self):
        """TileJSON advertises the contour layer and tile URL."""
        with TestClient(self.app) as client:
            response = client.get("/terrain.json")

        self.assertEqual(response.status_code, 200)
        document = response.json()
        self.assertEqual(document["tilejson"], "3.0.0")
        self.assertEqual(document["tiles"], ["http://testserver/terrain/{z}/{x}/{y}.mvt"])
        self.assertEqual(document["attribution"], "test data")
        self.assertEqual(document["minzoom"], 0)
        self.assertEqual(document["maxzoom"], 14)
        self.assertEqual(document["vector_layers"][0]["id"], "contours")
        self.assertEqual(set(document["vector_layers"][0]["fields"]), {"ele", "level"})

    def test_tilejson_unknown(self):
        with TestClient(self.app) as client:
            response = client.get("/mars.json")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["tileset"], "mars")

    def test_catalog(self):
        """The root lists every tileset."""
        with TestClient(self.app) as client:
            response = client.get("/")

        self.assertEqual(response.status_code, 200)
        catalog = response.json()
        self.assertEqual(catalog["count"], 2)
        self.assertEqual([entry["name"] for entry in catalog["tilesets"]], ["terrain", "flat"])
        self.assertEqual(catalog["tilesets"][0]["tilejson"], "http://testserver/terrain.json")

    def test_catalog_survives_broken_metadata(self):
        """A tileset with unreadable metadata is reported, not fatal."""
        registry = TilesetRegistry({"broken": BrokenMetadataSource({}, name="broken")})
        app = create_app(Config(), registry=registry)

        with TestClient(app) as client:
            response = client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["tilesets"][0]["error"], "Failed to read metadata")

    def test_health(self):
        with TestClient(self.app) as client:
            response = client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {
            "status": "ok",
            "directory": "/data/pmtiles",
            "tilesets": ["terrain", "flat"],
            "count": 2
        })

    def test_metrics_endpoint(self):
        """Prometheus metrics reflect served tiles."""
        with TestClient(self.app) as client:
            client.get("/terrain/2/1/1.mvt")
            response = client.get("/metrics")

        self.assertEqual(response.status_code, 200)
        self.assertIn('contour_tiles_total{tileset="terrain",status="ok"} 1.0', response.text)

    def test_injected_registry_not_closed(self):
        """The app only closes registries it opened itself."""
        with TestClient(self.app):
            pass
        self.assertFalse(self.sources["terrain"].closed)


class TestBuildTileJSON(unittest.TestCase):
    """Test suite for TileJSON documents."""

    def test_uses_source_metadata(self):
        source = InMemorySource({})
        document = build_tilejson("terrain", source, "http://tiles.example.com")

        self.assertEqual(document["name"], "terrain")
        self.assertEqual(document["scheme"], "xyz")
        self.assertEqual(document["center"], [0.0, 0.0, 7])
        self.assertEqual(document["bounds"], [-180.0, -85.0511, 180.0, 85.0511])


if __name__ == "__main__":
    unittest.main()
