"""
Unit tests for configuration loading and logging setup.
"""

import sys
import unittest
from pathlib import Path

import structlog

sys.path.append(str(Path(__file__).parent.parent.parent / "src"))

from dem_contours.errors import ConfigurationError, UnknownEncoding
from dem_contours.processing.elevation import ElevationEncoding
from dem_contours.utils.config import Config, load_config
from dem_contours.utils.logging_config import configure_logging


class TestLoadConfig(unittest.TestCase):
    """Test suite for environment-driven configuration."""

    def test_defaults(self):
        """An empty environment gives the documented defaults."""
        config = load_config({})

        self.assertEqual(config.tile_dir, Path("./pmtiles-data"))
        self.assertEqual(config.host, "0.0.0.0")
        self.assertEqual(config.port, 3000)
        self.assertIs(config.encoding, ElevationEncoding.TERRARIUM)
        self.assertEqual(config.contour_interval, 10.0)
        self.assertEqual(config.major_interval, 50.0)
        self.assertEqual(config.buffer_pixels, 1)
        self.assertEqual(config.extent, 4096)

    def test_environment_values(self):
        config = load_config({
            "TILE_DIR": "/srv/dem",
            "HOST": "127.0.0.1",
            "PORT": "8080",
            "ENCODING": "MAPBOX",
            "CONTOUR_INTERVAL": "20",
            "MAJOR_INTERVAL": "100",
            "BUFFER_PIXELS": "2",
            "TILE_EXTENT": "8192",
            "LOG_LEVEL": "DEBUG",
            "LOG_FORMAT": "console",
        })

        self.assertEqual(config.tile_dir, Path("/srv/dem"))
        self.assertEqual(config.port, 8080)
        self.assertIs(config.encoding, ElevationEncoding.MAPBOX)
        self.assertEqual(config.contour_interval, 20.0)
        self.assertEqual(config.major_interval, 100.0)
        self.assertEqual(config.buffer_pixels, 2)
        self.assertEqual(config.extent, 8192)
        self.assertEqual(config.log_level, "debug")
        self.assertEqual(config.log_format, "console")

    def test_tile_dir_argument_wins(self):
        config = load_config({"TILE_DIR": "/srv/dem"}, tile_dir="/tmp/other")
        self.assertEqual(config.tile_dir, Path("/tmp/other"))

    def test_blank_values_use_defaults(self):
        self.assertEqual(load_config({"PORT": " "}).port, 3000)

    def test_unknown_encoding(self):
        with self.assertRaises(UnknownEncoding):
            load_config({"ENCODING": "grayscale"})

    def test_malformed_numbers(self):
        """Values that are not numbers stop startup."""
        for name in ("PORT", "CONTOUR_INTERVAL", "BUFFER_PIXELS"):
            with self.subTest(name=name):
                with self.assertRaises(ConfigurationError):
                    load_config({name: "lots"})

    def test_out_of_range(self):
        """Values outside their valid range stop startup."""
        for environ in (
            {"CONTOUR_INTERVAL": "0"},
            {"MAJOR_INTERVAL": "-50"},
            {"BUFFER_PIXELS": "-1"},
            {"TILE_EXTENT": "0"},
            {"PORT": "70000"},
            {"LOG_FORMAT": "xml"},
        ):
            with self.subTest(environ=environ):
                with self.assertRaises(ConfigurationError):
                    load_config(environ)

    def test_log_level_must_suit_uvicorn(self):
        """Only level names the ASGI server understands are accepted."""
        with self.assertRaises(ConfigurationError):
            load_config({"LOG_LEVEL": "warn"})
        self.assertEqual(load_config({"LOG_LEVEL": "TRACE"}).log_level, "trace")
        self.assertEqual(load_config({"LOG_LEVEL": "warning"}).log_level, "warning")

    def test_immutable(self):
        config = Config()
        with self.assertRaises(AttributeError):
            config.port = 1

    def test_with_tile_dir(self):
        config = Config().with_tile_dir("/srv/dem")
        self.assertEqual(config.tile_dir, Path("/srv/dem"))


class TestConfigureLogging(unittest.TestCase):
    """Test suite for logging setup."""

    def tearDown(self):
        """Clean up after tests."""
        structlog.reset_defaults()

    def test_json_renderer(self):
        configure_logging("info", "json")
        processors = structlog.get_config()["processors"]
        self.assertIsInstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer(self):
        configure_logging("debug", "console")
        processors = structlog.get_config()["processors"]
        self.assertIsInstance(processors[-1], structlog.dev.ConsoleRenderer)


if __name__ == "__main__":
    unittest.main()
