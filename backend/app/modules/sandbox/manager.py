"""
Sandbox registry

Maps sandbox IDs to providers. Lookups are always explicit by ID; there is
no notion of a "currently active" sandbox.
"""

from typing import Dict, List, Optional

from app.core.logging_config import logger
from app.modules.sandbox.provider import SandboxProvider


class SandboxManager:
    """In-process registry of sandbox providers"""

    def __init__(self):
        self._providers: Dict[str, SandboxProvider] = {}

    def register(self, provider: SandboxProvider) -> None:
        if provider.sandbox_id in self._providers:
            logger.info(f"[SandboxManager] Replacing provider for sandbox {provider.sandbox_id}")
        self._providers[provider.sandbox_id] = provider
        logger.info(
            f"[SandboxManager] Registered {provider.provider_kind} sandbox {provider.sandbox_id}"
        )

    def get_provider(self, sandbox_id: str) -> Optional[SandboxProvider]:
        return self._providers.get(sandbox_id)

    def remove(self, sandbox_id: str) -> bool:
        removed = self._providers.pop(sandbox_id, None)
        if removed is not None:
            logger.info(f"[SandboxManager] Removed sandbox {sandbox_id}")
        return removed is not None

    def list_sandboxes(self) -> List[SandboxProvider]:
        return list(self._providers.values())

    def clear(self) -> None:
        self._providers.clear()


# Singleton instance
sandbox_manager = SandboxManager()
