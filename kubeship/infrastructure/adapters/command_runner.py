"""
Command Runner

Architectural Intent:
- Single place where cluster and cloud CLIs are executed
- Blocking subprocess calls run in the default executor so callers stay async
- A non-zero exit is data, not an exception; adapters decide what it means

Security:
- Arguments are passed as a vector, never through a shell
- Only the argument vector is logged; secrets travel in manifest files, not argv
"""

from __future__ import annotations
import asyncio
import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND = 127
COMMAND_TIMED_OUT = 124


@dataclass(frozen=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command(self) -> str:
        return shlex.join(self.args)


def _text(raw) -> str:
    if raw is None:
        return ""
    return raw.decode(errors="replace") if isinstance(raw, bytes) else raw


class CommandRunner:
    def __init__(self, default_timeout: Optional[float] = None):
        self.default_timeout = default_timeout

    async def run(self, args: list[str], timeout: Optional[float] = None) -> CommandResult:
        argv = tuple(args)
        limit = timeout if timeout is not None else self.default_timeout
        logger.debug("Running: %s", shlex.join(argv))

        def _run() -> CommandResult:
            try:
                result = subprocess.run(
                    list(argv),
                    capture_output=True,
                    text=True,
                    timeout=limit,
                )
            except FileNotFoundError:
                return CommandResult(argv, COMMAND_NOT_FOUND, "", f"{argv[0]}: command not found")
            except subprocess.TimeoutExpired as e:
                return CommandResult(
                    argv,
                    COMMAND_TIMED_OUT,
                    _text(e.stdout),
                    _text(e.stderr) or f"timed out after {limit}s",
                )
            return CommandResult(argv, result.returncode, result.stdout or "", result.stderr or "")

        result = await asyncio.get_event_loop().run_in_executor(None, _run)
        if not result.ok:
            logger.debug("%s exited %d: %s", argv[0], result.returncode, result.stderr.strip())
        return result

