"""End-to-end checks against real MySQL, Milvus and embedding services.

Run with RUN_INTEGRATION_TESTS=1 and the usual DB_*, SILICONFLOW_* and
MILVUS_* variables pointing at disposable instances.
"""

import json

import pytest

from common.config.settings import Settings
from mcp_server.context import open_app_context

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_select_one_and_table_lookup(tmp_path, monkeypatch):
    monkeypatch.setenv("LEDGER_PATH", str(tmp_path / "schema.db"))
    monkeypatch.setenv("SCHEMA_REFRESH_ENABLED", "false")
    settings = Settings.from_env()

    async with open_app_context(settings) as app:
        rows = json.loads(await app.facade.execute_sql("SELECT 1 AS one"))
        assert rows == [{"one": 1}]

        result = await app.facade.find_relevant_tables("which tables exist")
        assert isinstance(result, str)
