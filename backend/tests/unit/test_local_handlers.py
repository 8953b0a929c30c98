# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for the CLI, file and database handlers

Uses the running Python interpreter as the CLI tool, a temp workspace for
files and a temp SQLite database.
"""

import shlex
import sys
import time

import pytest

from mcp_hub.core.errors import ConnectorTimeoutError, DispatchError
from mcp_hub.handlers import CliHandler, DatabaseHandler, FileHandler
from mcp_hub.handlers.cli import build_command
from mcp_hub.models import InvocationContext

PYTHON = shlex.quote(sys.executable)


@pytest.fixture
def context(tmp_path):
    return InvocationContext(workspace_root=str(tmp_path))


# ============================================================================
# CLI
# ============================================================================

class TestBuildCommand:
    """Test command line assembly"""

    def test_run_appends_args(self):
        assert build_command("git", "run", {"args": "status --short"}) == ["git", "status", "--short"]

    def test_version(self):
        assert build_command("git", "version", {"args": "ignored"}) == ["git", "--version"]

    def test_other_action_is_subcommand(self):
        assert build_command("git", "log", {"args": ["-n", 1]}) == ["git", "log", "-n", "1"]

    def test_quoted_args_stay_whole(self):
        assert build_command("git", "commit", {"args": "-m 'two words'"}) == ["git", "commit", "-m", "two words"]


class TestCliHandler:
    """Test subprocess execution"""

    @pytest.fixture
    def handler(self, hub_config):
        return CliHandler(hub_config)

    @pytest.mark.asyncio
    async def test_run_captures_output(self, handler, connector_factory, context):
        connector = connector_factory("py", "cli", config={"command": f"{PYTHON} -c"})

        response = await handler.handle(connector, "run", {"args": ["print('hello')"]}, context)

        assert response.success
        assert response.data == {"stdout": "hello", "stderr": "", "exitCode": 0}

    @pytest.mark.asyncio
    async def test_runs_in_workspace_root(self, handler, connector_factory, context, tmp_path):
        connector = connector_factory("py", "cli", config={"command": f"{PYTHON} -c"})

        response = await handler.handle(connector, "run", {"args": ["import os; print(os.getcwd())"]}, context)

        assert response.data["stdout"] == str(tmp_path.resolve())

    @pytest.mark.asyncio
    async def test_missing_workspace_root(self, handler, connector_factory, tmp_path):
        connector = connector_factory("py", "cli", config={"command": f"{PYTHON} -c"})
        context = InvocationContext(workspace_root=str(tmp_path / "gone"))

        with pytest.raises(DispatchError, match="Workspace root does not exist"):
            await handler.handle(connector, "run", {"args": ["print(1)"]}, context)

    @pytest.mark.asyncio
    async def test_version(self, handler, connector_factory, context):
        connector = connector_factory("py", "cli", config={"command": PYTHON})

        response = await handler.handle(connector, "version", {}, context)

        assert response.success
        assert response.data["stdout"].startswith("Python")

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, handler, connector_factory, context):
        connector = connector_factory("py", "cli", config={"command": f"{PYTHON} -c"})
        script = "import sys; print('out'); print('bad', file=sys.stderr); sys.exit(3)"

        with pytest.raises(DispatchError) as exc_info:
            await handler.handle(connector, "run", {"args": [script]}, context)

        assert exc_info.value.data == {"stdout": "out", "stderr": "bad", "exitCode": 3}

    @pytest.mark.asyncio
    async def test_timeout_kills_and_keeps_partial_output(self, handler, connector_factory, context):
        connector = connector_factory("py", "cli", config={"command": f"{PYTHON} -c", "timeout": 2000})
        script = "import time; print('partial', flush=True); time.sleep(30)"

        started = time.monotonic()
        with pytest.raises(ConnectorTimeoutError) as exc_info:
            await handler.handle(connector, "run", {"args": [script]}, context)

        assert time.monotonic() - started < 15
        assert exc_info.value.details == {"timeout": 2000}
        assert exc_info.value.data["stdout"] == "partial"

    @pytest.mark.asyncio
    async def test_missing_binary(self, handler, connector_factory, context):
        connector = connector_factory("ghost", "cli", config={"command": "neon-no-such-binary-3f9a"})

        with pytest.raises(DispatchError, match="CLI execution failed"):
            await handler.handle(connector, "run", {}, context)

    @pytest.mark.asyncio
    async def test_missing_command(self, handler, connector_factory, context):
        with pytest.raises(DispatchError, match="no command"):
            await handler.handle(connector_factory("docker", "cli"), "run", {}, context)


# ============================================================================
# File
# ============================================================================

class TestFileHandler:
    """Test filesystem operations"""

    @pytest.fixture
    def handler(self, hub_config):
        return FileHandler(hub_config)

    @pytest.fixture
    def docs(self, connector_factory):
        return connector_factory("docs", "file", config={"filePath": "docs/README.md"})

    @pytest.mark.asyncio
    async def test_write_then_read_relative_to_workspace(self, handler, docs, context, tmp_path):
        (tmp_path / "docs").mkdir()

        written = await handler.handle(docs, "write", {"content": "# Title\n"}, context)
        read = await handler.handle(docs, "read", {}, context)

        assert written.data == {"success": True}
        assert read.data == {"content": "# Title\n"}
        assert (tmp_path / "docs" / "README.md").read_text() == "# Title\n"

    @pytest.mark.asyncio
    async def test_append(self, handler, docs, context, tmp_path):
        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "README.md").write_text("a")

        await handler.handle(docs, "append", {"content": "b"}, context)

        assert (tmp_path / "docs" / "README.md").read_text() == "ab"

    @pytest.mark.asyncio
    async def test_params_path_overrides_config(self, handler, docs, context, tmp_path):
        (tmp_path / "notes.txt").write_text("n")

        response = await handler.handle(docs, "read", {"path": "notes.txt"}, context)

        assert response.data == {"content": "n"}

    @pytest.mark.asyncio
    async def test_exists(self, handler, docs, context, tmp_path):
        assert (await handler.handle(docs, "exists", {}, context)).data == {"exists": False}

        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "README.md").write_text("x")

        assert (await handler.handle(docs, "exists", {}, context)).data == {"exists": True}

    @pytest.mark.asyncio
    async def test_stat(self, handler, docs, context, tmp_path):
        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "README.md").write_text("12345")

        response = await handler.handle(docs, "stat", {}, context)

        assert response.data["size"] == 5
        assert response.data["isFile"] is True
        assert response.data["isDirectory"] is False
        assert "T" in response.data["mtime"]

    @pytest.mark.asyncio
    async def test_read_missing_file(self, handler, docs, context):
        with pytest.raises(DispatchError, match="File operation failed"):
            await handler.handle(docs, "read", {}, context)

    @pytest.mark.asyncio
    async def test_write_requires_content(self, handler, docs, context):
        with pytest.raises(DispatchError, match="requires 'content'"):
            await handler.handle(docs, "write", {}, context)

    @pytest.mark.asyncio
    async def test_unsupported_action(self, handler, docs, context):
        with pytest.raises(DispatchError, match="Unsupported file action: delete"):
            await handler.handle(docs, "delete", {}, context)

    @pytest.mark.asyncio
    async def test_no_path(self, handler, connector_factory, context):
        with pytest.raises(DispatchError, match="no file path"):
            await handler.handle(connector_factory("f", "file"), "read", {}, context)


# ============================================================================
# Database
# ============================================================================

class TestDatabaseHandler:
    """Test SQL execution against SQLite"""

    @pytest.fixture
    def handler(self, hub_config):
        return DatabaseHandler(hub_config)

    @pytest.fixture
    def db(self, connector_factory, tmp_path):
        return connector_factory(
            "db", "database",
            config={"connectionString": f"sqlite:///{tmp_path / 'hub.db'}"}
        )

    @pytest.mark.asyncio
    async def test_create_insert_select(self, handler, db, context):
        await handler.handle(db, "query", {"sql": "CREATE TABLE issues (id INTEGER PRIMARY KEY, title TEXT)"}, context)
        inserted = await handler.handle(
            db, "query",
            {"sql": "INSERT INTO issues (title) VALUES (:title)", "parameters": {"title": "Bug"}},
            context
        )
        selected = await handler.handle(db, "query", {"sql": "SELECT id, title FROM issues"}, context)

        assert inserted.data["rowCount"] == 1
        assert selected.data == {
            "rows": [{"id": 1, "title": "Bug"}],
            "rowCount": 1,
            "query": "SELECT id, title FROM issues",
        }

    @pytest.mark.asyncio
    async def test_schema(self, handler, db, context):
        await handler.handle(db, "query", {"sql": "CREATE TABLE builds (id INTEGER)"}, context)

        response = await handler.handle(db, "schema", {}, context)

        assert response.data["tables"] == ["builds"]
        assert isinstance(response.data["version"], str)

    @pytest.mark.asyncio
    async def test_bad_sql(self, handler, db, context):
        with pytest.raises(DispatchError, match="Database operation failed"):
            await handler.handle(db, "query", {"sql": "SELEKT nothing"}, context)

    @pytest.mark.asyncio
    async def test_query_requires_sql(self, handler, db, context):
        with pytest.raises(DispatchError, match="requires 'sql'"):
            await handler.handle(db, "query", {}, context)

    @pytest.mark.asyncio
    async def test_unsupported_action(self, handler, db, context):
        with pytest.raises(DispatchError, match="Unsupported database action"):
            await handler.handle(db, "drop", {}, context)

    @pytest.mark.asyncio
    async def test_missing_connection_string(self, handler, connector_factory, context):
        with pytest.raises(DispatchError, match="no connection string"):
            await handler.handle(connector_factory("database", "database"), "schema", {}, context)
