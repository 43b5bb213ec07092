import json
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

from blume.cli import app
from blume.core.logging import configure_logging
from tests.test_config import CONFIG
from tests.test_support import BlumeTestCase


class CliTestCase(BlumeTestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()

    def test_show_config(self):
        result = self.runner.invoke(app, ["show-config"])
        self.assertEqual(0, result.exit_code, result.output)
        config = json.loads(result.output)
        self.assertEqual(11155111, config["network"]["chain_id"])

        with tempfile.TemporaryDirectory() as tmp:
            config_file = Path(tmp) / "blume.toml"
            config_file.write_text(CONFIG)
            result = self.runner.invoke(
                app, ["--config-file", str(config_file), "show-config"]
            )
        self.assertEqual(0, result.exit_code, result.output)
        self.assertEqual(6, json.loads(result.output)["assets"]["USDC"]["decimals"])

    def test_to_base_units(self):
        result = self.runner.invoke(app, ["to-base-units", "1.5", "BLX"])
        self.assertEqual(0, result.exit_code, result.output)
        self.assertEqual("1500000000000000000", result.output.strip())

        result = self.runner.invoke(app, ["to-base-units", "1e3", "BLX"])
        self.assertNotEqual(0, result.exit_code)
        self.assertIn("invalid amount", result.output)

        result = self.runner.invoke(app, ["to-base-units", "1", "DAI"])
        self.assertNotEqual(0, result.exit_code)

    def test_to_display(self):
        result = self.runner.invoke(app, ["to-display", "1500000000000000000", "USDC"])
        self.assertEqual(0, result.exit_code, result.output)
        self.assertEqual("1.5", result.output.strip())

    def test_swap_quote(self):
        result = self.runner.invoke(
            app,
            [
                "swap-quote",
                "--amount-in",
                "1000",
                "--reserve-in",
                "1000000",
                "--reserve-out",
                "1000000",
            ],
        )
        self.assertEqual(0, result.exit_code, result.output)
        self.assertIn("amount out: 996.006981", result.output)
        self.assertIn("USDC", result.output)
        self.assertIn("minimum received (100 bps slippage): 986.04", result.output)

        result = self.runner.invoke(
            app,
            [
                "swap-quote",
                "--amount-in",
                "1",
                "--reserve-in",
                "10",
                "--reserve-out",
                "10",
                "--symbol-in",
                "stBLX",
            ],
        )
        self.assertNotEqual(0, result.exit_code)

    def test_pool_share(self):
        result = self.runner.invoke(
            app, ["pool-share", "--lp-balance", "250", "--total-supply", "10000"]
        )
        self.assertEqual(0, result.exit_code, result.output)
        self.assertEqual("2.5%", result.output.strip())

        result = self.runner.invoke(
            app, ["pool-share", "--lp-balance", "250", "--total-supply", "0"]
        )
        self.assertEqual("0%", result.output.strip())

    def test_log_level(self):
        self.addCleanup(configure_logging)
        result = self.runner.invoke(app, ["--log-level", "debug", "to-display", "1", "BLX"])
        self.assertEqual(0, result.exit_code, result.output)

        result = self.runner.invoke(app, ["--log-level", "TRACE", "show-config"])
        self.assertNotEqual(0, result.exit_code)


if __name__ == "__main__":
    unittest.main()
