import json
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import httpx
from loguru import logger
from typer.testing import CliRunner

from searchrelay.cli import app
from searchrelay.usage import current_month

CONFIG = """
primary = "brv"
usage_file = "{usage}"

[[providers]]
id = "brv"
type = "brave"
api_key_env = "SR_CLI_BRAVE_KEY"
monthly_limit = 100

[[providers]]
id = "backend"
type = "custom"
api_key_env = "SR_CLI_BACKEND_KEY"
monthly_limit = 5
"""


class FakeClient:
    def __init__(self, status, data):
        self.status = status
        self.data = data

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def request(self, method, url, **kwargs):
        return httpx.Response(self.status, request=httpx.Request(method, url), json=self.data)


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.usage_path = self.root / "usage.json"
        self.config_path = self.root / "config.toml"
        self.config_path.write_text(CONFIG.format(usage=self.usage_path))
        self.runner = CliRunner()
        self.addCleanup(self._restore_logger)

    def tearDown(self):
        self._tmp.cleanup()

    @staticmethod
    def _restore_logger():
        logger.remove()
        logger.add(sys.stderr)

    def _invoke(self, args, **env):
        return self.runner.invoke(app, args, env={"SEARCHRELAY_CONFIG": str(self.config_path), **env})

    def test_search_prints_result_and_charges_provider(self):
        data = {"web": {"results": [{"title": "Py", "url": "https://python.org", "description": "d"}]}}
        with patch("searchrelay.providers.base.httpx.AsyncClient", return_value=FakeClient(200, data)):
            result = self._invoke(["search", "python", "--count", "1"], SR_CLI_BRAVE_KEY="b-key")

        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.stdout)
        self.assertEqual(payload["provider"], "brv")
        self.assertEqual(payload["results"][0]["url"], "https://python.org")
        self.assertEqual(json.loads(self.usage_path.read_text())["brv"]["count"], 1)

    def test_search_error_payload_exits_1(self):
        with patch("searchrelay.providers.base.httpx.AsyncClient", return_value=FakeClient(500, {})):
            result = self._invoke(["search", "python"], SR_CLI_BRAVE_KEY="b-key")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("All providers failed or at limit", result.output)
        self.assertIn("Brave API error: 500", result.output)
        self.assertFalse(self.usage_path.exists())

    def test_validate_reports_missing_credentials_and_endpoint(self):
        result = self._invoke(["validate"], SR_CLI_BRAVE_KEY="b-key")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("backend: SR_CLI_BACKEND_KEY not set", result.output)
        self.assertIn("backend: base_url required for custom provider", result.output)
        self.assertNotIn("brv:", result.output)

    def test_config_error_exits_2(self):
        self.config_path.write_text("[[providers]]\nid = \"x\"\n")
        result = self._invoke(["usage"])

        self.assertEqual(result.exit_code, 2)
        self.assertIn("Config error", result.output)

    def test_usage_table_reads_persisted_counts(self):
        month = current_month()
        self.usage_path.write_text(
            json.dumps({"brv": {"count": 7, "month": month}, "backend": {"count": 3, "month": "2000-01"}})
        )
        result = self._invoke(["usage"])

        self.assertEqual(result.exit_code, 0, result.output)
        lines = result.output.splitlines()
        self.assertTrue(lines[0].startswith("Provider"))
        brv_row = [cell.strip() for cell in lines[2].split("|")]
        backend_row = [cell.strip() for cell in lines[3].split("|")]
        self.assertEqual(brv_row, ["brv", "brave", "7", "100", month])
        self.assertEqual(backend_row, ["backend", "custom", "0", "5", month])

    def test_providers_lists_attempt_order_and_key_status(self):
        result = self._invoke(["providers"], SR_CLI_BRAVE_KEY="b-key")

        self.assertEqual(result.exit_code, 0, result.output)
        rows = [[cell.strip() for cell in line.split("|")] for line in result.output.splitlines()[2:]]
        self.assertEqual(rows[0], ["1", "brv", "brave", "SR_CLI_BRAVE_KEY", "set"])
        self.assertEqual(rows[1], ["2", "backend", "custom", "SR_CLI_BACKEND_KEY", "missing"])


if __name__ == "__main__":
    unittest.main()
