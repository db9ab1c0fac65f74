"""
Pydantic schemas for sandbox registration endpoints
"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from app.schemas.runtime import CamelModel


class RegisterSandboxRequest(CamelModel):
    """Register a local directory as a sandbox"""
    sandbox_id: str = Field(..., min_length=1, description="Sandbox identifier")
    root_dir: str = Field(..., min_length=1, description="Project directory on this host")
    preview_url: Optional[str] = Field(None, description="URL the preview app is served on")


class SandboxInfoResponse(CamelModel):
    sandbox_id: str
    info: Dict[str, Any] = Field(default_factory=dict)


class SandboxListResponse(CamelModel):
    sandboxes: List[SandboxInfoResponse] = Field(default_factory=list)
