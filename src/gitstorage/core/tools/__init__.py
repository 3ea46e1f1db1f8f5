"""
Subprocess runtime for git-storage.

Components:
- run_process: Run an argv to completion without a shell
- ProcessResult: Structured result (exit code, output, timing)
"""

from gitstorage.core.tools.process import ProcessResult, run_process

__all__ = ["ProcessResult", "run_process"]
