from __future__ import annotations

import asyncio
import unittest
from unittest.mock import patch

from mcp.server.fastmcp.exceptions import ToolError

from tasklog import mcp_server

from tests.helpers import TODAY, TODAY_LABEL, temp_home


class TestMcpTools(unittest.TestCase):
    def test_tools_drive_the_log(self) -> None:
        with temp_home() as home, patch("tasklog.store._today", return_value=TODAY):
            self.assertEqual(f"Task log initialized at {home / 'log.md'}", mcp_server.init_log())
            self.assertEqual("Created task: infra-1", mcp_server.create_task("infra", "rotate keys"))
            self.assertEqual("Note added to task: infra-1", mcp_server.add_note("infra-1", "use vault"))
            self.assertEqual("Completed task: infra-1", mcp_server.complete_task("infra-1"))
            self.assertEqual("Task already completed: infra-1", mcp_server.complete_task("infra-1"))
            self.assertEqual("[x] infra-1 rotate keys\n      - use vault\n", mcp_server.search_tasks("ROTATE"))
            self.assertEqual("No tasks found matching 'deploy'", mcp_server.search_tasks("deploy"))
            self.assertEqual("No tasks found matching 'rotate'", mcp_server.search_tasks("rotate", tag="dev"))
            self.assertEqual(
                f"### {TODAY_LABEL}\n- [x] infra-1 rotate keys\n      - use vault",
                mcp_server.get_today_section(),
            )

    def test_undecodable_bytes_are_replaced_in_tool_output(self) -> None:
        with temp_home() as home, patch("tasklog.store._today", return_value=TODAY):
            mcp_server.init_log()
            (home / "log.md").write_bytes(f"### {TODAY_LABEL}\n- [ ] dev-1 caf\xff title\n".encode("latin-1"))
            self.assertEqual("[ ] dev-1 caf\ufffd title\n", mcp_server.search_tasks("title"))
            self.assertEqual(f"### {TODAY_LABEL}\n- [ ] dev-1 caf\ufffd title", mcp_server.get_today_section())

    def test_failures_become_tool_errors(self) -> None:
        with temp_home():
            with self.assertRaises(ToolError) as ctx:
                mcp_server.create_task("infra", "x")
            self.assertTrue(str(ctx.exception).startswith("not_initialized:"))

            mcp_server.init_log()
            with self.assertRaises(ToolError) as ctx:
                mcp_server.complete_task("infra-7")
            self.assertEqual("task_not_found: task not found: infra-7", str(ctx.exception))

            with self.assertRaises(ToolError) as ctx:
                mcp_server.create_task("Infra", "x")
            self.assertTrue(str(ctx.exception).startswith("invalid_input:"))

    def test_tools_are_registered(self) -> None:
        names = {tool.name for tool in asyncio.run(mcp_server.mcp.list_tools())}
        self.assertEqual(
            {"init_log", "create_task", "complete_task", "add_note", "search_tasks", "get_today_section"},
            names,
        )


if __name__ == "__main__":
    unittest.main()
