"""
Sandbox provider capability

The runtime fixer only ever talks to a sandbox through this surface:
run a command, read a file, write a file, describe the sandbox.
Concrete providers (local directory, remote container ...) implement it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class CommandResult:
    """Result of a command executed inside a sandbox"""
    success: bool
    exit_code: int
    stdout: str = ""
    stderr: str = ""


class SandboxProvider(ABC):
    """Capability surface of a sandbox"""

    provider_kind: str = "abstract"

    def __init__(self, sandbox_id: str):
        self.sandbox_id = sandbox_id

    @abstractmethod
    async def run_command(self, command: str) -> CommandResult:
        """Run a shell command in the sandbox working directory"""

    @abstractmethod
    async def read_file(self, path: str) -> str:
        """
        Read a file relative to the sandbox root.

        Raises:
            SandboxFileNotFoundError: the file does not exist
            SandboxError: the file exists but cannot be read as text
        """

    @abstractmethod
    async def write_file(self, path: str, content: str) -> None:
        """Create or overwrite a file relative to the sandbox root"""

    @abstractmethod
    async def get_sandbox_info(self) -> Dict[str, Any]:
        """Describe the sandbox; always contains a 'provider' key"""
