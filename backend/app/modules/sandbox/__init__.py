"""
Sandbox capability layer: provider interface, local provider, registry
"""

from app.modules.sandbox.provider import CommandResult, SandboxProvider
from app.modules.sandbox.local_provider import LocalSandboxProvider
from app.modules.sandbox.manager import SandboxManager, sandbox_manager

__all__ = [
    'CommandResult',
    'SandboxProvider',
    'LocalSandboxProvider',
    'SandboxManager',
    'sandbox_manager',
]
