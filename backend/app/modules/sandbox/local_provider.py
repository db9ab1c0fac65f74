"""
Local directory sandbox provider

Backs a sandbox with a project directory on this host. Used for local
development (Vite dev server running next to the API) and in tests.
"""

import asyncio
import os
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles

from app.core.config import settings
from app.core.exceptions import (
    ForbiddenPathError,
    SandboxCommandError,
    SandboxError,
    SandboxFileNotFoundError,
)
from app.core.logging_config import logger
from app.modules.sandbox.provider import CommandResult, SandboxProvider


class LocalSandboxProvider(SandboxProvider):
    """Sandbox rooted at a local directory"""

    provider_kind = "local"

    def __init__(
        self,
        sandbox_id: str,
        root_dir: str,
        preview_url: Optional[str] = None,
        command_timeout: Optional[int] = None
    ):
        super().__init__(sandbox_id)
        self.root_dir = Path(root_dir).resolve()
        self.preview_url = preview_url
        self.command_timeout = command_timeout or settings.SANDBOX_COMMAND_TIMEOUT

    def _resolve(self, path: str) -> Path:
        """Map a sandbox-relative path to an absolute one, refusing escapes"""
        relative = path.replace('\\', '/').lstrip('/')
        if not relative:
            raise ForbiddenPathError(path, "empty path")

        full_path = (self.root_dir / relative).resolve()
        if full_path != self.root_dir and self.root_dir not in full_path.parents:
            raise ForbiddenPathError(path, "path escapes the sandbox root")
        return full_path

    async def read_file(self, path: str) -> str:
        full_path = self._resolve(path)
        try:
            async with aiofiles.open(full_path, 'r', encoding='utf-8') as f:
                return await f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            raise SandboxFileNotFoundError(path, self.sandbox_id)
        except UnicodeDecodeError as e:
            raise SandboxError(f"File '{path}' is not UTF-8 text: {e.reason}", self.sandbox_id)

    async def write_file(self, path: str, content: str) -> None:
        full_path = self._resolve(path)
        os.makedirs(full_path.parent, exist_ok=True)

        async with aiofiles.open(full_path, 'w', encoding='utf-8') as f:
            await f.write(content)

        logger.debug(f"[LocalSandbox:{self.sandbox_id}] Wrote {path} ({len(content)} chars)")

    async def run_command(self, command: str) -> CommandResult:
        logger.info(f"[LocalSandbox:{self.sandbox_id}] Running: {command}")

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                cwd=str(self.root_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SandboxCommandError(command, str(e), self.sandbox_id)

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.command_timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.warning(f"[LocalSandbox:{self.sandbox_id}] Command timed out after {self.command_timeout}s")
            return CommandResult(
                success=False,
                exit_code=-1,
                stderr=f"Command timed out after {self.command_timeout}s"
            )

        exit_code = process.returncode if process.returncode is not None else -1
        return CommandResult(
            success=exit_code == 0,
            exit_code=exit_code,
            stdout=stdout.decode('utf-8', errors='replace'),
            stderr=stderr.decode('utf-8', errors='replace'),
        )

    async def get_sandbox_info(self) -> Dict[str, Any]:
        return {
            "provider": self.provider_kind,
            "sandbox_id": self.sandbox_id,
            "root_dir": str(self.root_dir),
            "preview_url": self.preview_url,
        }
