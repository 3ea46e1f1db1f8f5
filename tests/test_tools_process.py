"""Tests for the async process runner."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from gitstorage.core.tools.process import ProcessResult, run_process


class TestProcessResult:
    """Tests for ProcessResult model."""

    def test_failure_text_prefers_error(self):
        result = ProcessResult(
            command=["git", "status"],
            success=False,
            exit_code=None,
            stdout="",
            stderr="ignored",
            duration_ms=1,
            error="Command not found: git",
        )
        assert result.failure_text == "Command not found: git"

    def test_failure_text_falls_back_to_stderr_then_exit_code(self):
        with_stderr = ProcessResult(
            command=["git"], success=False, exit_code=128, stdout="",
            stderr="fatal: not a git repository\n", duration_ms=1,
        )
        bare = ProcessResult(
            command=["git"], success=False, exit_code=2, stdout="",
            stderr="", duration_ms=1,
        )

        assert with_stderr.failure_text == "fatal: not a git repository"
        assert bare.failure_text == "exit code 2"


class TestRunProcess:
    """Tests for run_process function."""

    @pytest.mark.asyncio
    async def test_successful_command(self):
        result = await run_process([sys.executable, "-c", "print('hello')"])

        assert result.success is True
        assert result.exit_code == 0
        assert result.stdout.strip() == "hello"
        assert result.error is None
        assert result.command[0] == sys.executable

    @pytest.mark.asyncio
    async def test_nonzero_exit_is_reported_not_raised(self):
        result = await run_process([
            sys.executable,
            "-c",
            "import sys; sys.stderr.write('error message'); sys.exit(3)",
        ])

        assert result.success is False
        assert result.exit_code == 3
        assert "error message" in result.stderr

    @pytest.mark.asyncio
    async def test_runs_in_cwd(self, tmp_path: Path):
        result = await run_process(
            [sys.executable, "-c", "import os; print(os.getcwd())"],
            cwd=tmp_path,
        )

        assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()

    @pytest.mark.asyncio
    async def test_env_is_merged(self):
        result = await run_process(
            [sys.executable, "-c", "import os; print(os.environ['GS_TEST_VALUE'])"],
            env={"GS_TEST_VALUE": "42"},
        )

        assert result.stdout.strip() == "42"

    @pytest.mark.asyncio
    async def test_missing_command(self):
        result = await run_process(["definitely-not-a-real-command-xyz"])

        assert result.success is False
        assert result.exit_code is None
        assert "Command not found" in (result.error or "")

    @pytest.mark.asyncio
    async def test_missing_working_directory(self, tmp_path: Path):
        result = await run_process(
            [sys.executable, "-c", "pass"],
            cwd=tmp_path / "missing",
        )

        assert result.success is False
        assert "Working directory does not exist" in (result.error or "")
