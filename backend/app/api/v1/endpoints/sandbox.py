"""
Sandbox Registry API Endpoints

Provides endpoints for:
- Registering a local project directory as a sandbox
- Listing and inspecting registered sandboxes
- Unregistering a sandbox
"""

from pathlib import Path

from fastapi import APIRouter, HTTPException

from app.core.exceptions import SandboxNotFoundError
from app.core.logging_config import logger
from app.modules.sandbox import LocalSandboxProvider, sandbox_manager
from app.schemas.sandbox import (
    RegisterSandboxRequest,
    SandboxInfoResponse,
    SandboxListResponse,
)


router = APIRouter(prefix="/sandboxes", tags=["Sandboxes"])


@router.post("", response_model=SandboxInfoResponse, response_model_by_alias=True, status_code=201)
async def register_sandbox(request: RegisterSandboxRequest):
    """Register a local directory as a sandbox (replaces an existing registration)"""
    if not Path(request.root_dir).is_dir():
        raise HTTPException(status_code=400, detail=f"Directory not found: {request.root_dir}")

    provider = LocalSandboxProvider(
        sandbox_id=request.sandbox_id,
        root_dir=request.root_dir,
        preview_url=request.preview_url,
    )
    sandbox_manager.register(provider)

    return SandboxInfoResponse(
        sandbox_id=provider.sandbox_id,
        info=await provider.get_sandbox_info(),
    )


@router.get("", response_model=SandboxListResponse, response_model_by_alias=True)
async def list_sandboxes():
    """List registered sandboxes"""
    sandboxes = []
    for provider in sandbox_manager.list_sandboxes():
        sandboxes.append(SandboxInfoResponse(
            sandbox_id=provider.sandbox_id,
            info=await provider.get_sandbox_info(),
        ))
    return SandboxListResponse(sandboxes=sandboxes)


@router.get("/{sandbox_id}", response_model=SandboxInfoResponse, response_model_by_alias=True)
async def get_sandbox(sandbox_id: str):
    """Get provider info for one sandbox"""
    provider = sandbox_manager.get_provider(sandbox_id)
    if provider is None:
        raise SandboxNotFoundError(sandbox_id)

    return SandboxInfoResponse(
        sandbox_id=sandbox_id,
        info=await provider.get_sandbox_info(),
    )


@router.delete("/{sandbox_id}")
async def unregister_sandbox(sandbox_id: str):
    """Remove a sandbox from the registry (files are left untouched)"""
    if not sandbox_manager.remove(sandbox_id):
        raise SandboxNotFoundError(sandbox_id)

    logger.info(f"[Sandboxes] Unregistered {sandbox_id}")
    return {"success": True, "sandboxId": sandbox_id}
