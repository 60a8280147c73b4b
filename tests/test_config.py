"""Tests for the environment-backed config dict."""

import unittest
from unittest.mock import patch

from sportsnames.config import config, register_config_keys
from sportsnames.web import create_app
from tests.helpers import make_service


class TestConfig(unittest.TestCase):

    def test_register_config_keys_never_overwrites(self):
        with patch.dict(config, {"backend": "json"}):
            register_config_keys({"host_feature_flag": True, "backend": "mongo"})
            self.assertTrue(config["host_feature_flag"])
            self.assertEqual(config["backend"], "json")
        self.assertNotIn("host_feature_flag", config)

    def test_secret_key_from_config(self):
        with patch.dict(config, {"SECRET_KEY": "s3cret"}):
            app = create_app(service=make_service())
        self.assertEqual(app.config["SECRET_KEY"], "s3cret")


if __name__ == "__main__":
    unittest.main()
