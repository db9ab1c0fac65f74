"""
Runtime monitoring and auto-fix endpoints

POST /runtime/monitor    - Load a sandbox preview in headless Chromium and report errors
POST /runtime/fix        - Stream Claude's <file> fixes for a list of runtime errors
POST /runtime/fix/apply  - Write a fix response into the sandbox
"""

import time
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError as RequestBodyError

from app.core.config import settings
from app.core.logging_config import logger, set_sandbox_id
from app.modules.runtime_monitor import runtime_monitor
from app.modules.sandbox import sandbox_manager
from app.schemas.runtime import (
    ApplyFixRequest,
    AutoFixRequest,
    MonitorConfig,
    MonitorResult,
    MonitorRuntimeRequest,
    RuntimeErrorType,
)
from app.services.fix_applier import apply_fix
from app.services.runtime_error_fixer import runtime_error_fixer


router = APIRouter(prefix="/runtime", tags=["Runtime Monitoring"])

MISSING_MONITOR_FIELDS = "Missing required fields: sandboxUrl and sandboxId"
MISSING_FIX_FIELDS = "Missing sandboxId or errors"
MISSING_APPLY_FIELDS = "Missing sandboxId or fixedCode"
PROVIDER_NOT_FOUND = "Sandbox provider not found"


def configured_error_types() -> Optional[List[RuntimeErrorType]]:
    """Default allow-list from RUNTIME_ERROR_TYPES_STR (unknown names ignored)"""
    known = {t.value for t in RuntimeErrorType}
    types = [RuntimeErrorType(t) for t in settings.RUNTIME_ERROR_TYPES if t in known]
    return types or None


async def read_json_object(request: Request) -> Dict[str, Any]:
    """Request body as a dict, or {} when it is not a JSON object"""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def describe_body_error(error: RequestBodyError) -> str:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    )
    return f"Invalid request body: {problems}"


@router.post("/monitor")
async def monitor_runtime(raw_request: Request):
    """
    Monitor a sandbox preview for runtime errors.

    Always 200 once monitoring ran (success may be false when navigation
    failed). 400 when required fields are missing or the body does not
    validate, 500 with a zeroed envelope on unexpected faults.
    """
    try:
        request = MonitorRuntimeRequest.model_validate(await read_json_object(raw_request))
    except RequestBodyError as e:
        return JSONResponse(
            status_code=400,
            content={"success": False, "monitoringError": describe_body_error(e)},
        )

    if not request.sandbox_url or not request.sandbox_id:
        return JSONResponse(
            status_code=400,
            content={"success": False, "monitoringError": MISSING_MONITOR_FIELDS},
        )

    set_sandbox_id(request.sandbox_id)
    started = time.monotonic()

    config = MonitorConfig(
        sandbox_url=request.sandbox_url,
        sandbox_id=request.sandbox_id,
        timeout=request.timeout or settings.RUNTIME_MONITOR_TIMEOUT_MS,
        error_types=request.error_types or configured_error_types(),
        capture_screenshots=request.capture_screenshots,
    )

    try:
        result = await runtime_monitor.monitor(config)
    except Exception as e:
        logger.log_error_with_context(e, context="monitor_runtime", sandbox=request.sandbox_id)
        envelope = MonitorResult.failure_envelope(
            str(e),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return JSONResponse(status_code=500, content=envelope.to_wire())

    logger.log_performance("monitor_runtime", result.monitor_duration, threshold_ms=config.timeout)
    return JSONResponse(status_code=200, content=result.to_wire())


async def _relay(first_chunk: str, stream: AsyncIterator[str]) -> AsyncIterator[str]:
    if first_chunk:
        yield first_chunk
    async for chunk in stream:
        yield chunk


@router.post("/fix")
async def fix_runtime_errors(raw_request: Request):
    """
    Stream fixes for runtime errors as plain text <file path="..."> blocks.

    The first chunk is pulled before the response starts so generation
    failures still produce a JSON 500 instead of a truncated stream.
    """
    try:
        request = AutoFixRequest.model_validate(await read_json_object(raw_request))
    except RequestBodyError as e:
        return JSONResponse(status_code=400, content={"error": describe_body_error(e)})

    if not request.sandbox_id or not request.errors:
        return JSONResponse(status_code=400, content={"error": MISSING_FIX_FIELDS})

    provider = sandbox_manager.get_provider(request.sandbox_id)
    if provider is None:
        return JSONResponse(status_code=404, content={"error": PROVIDER_NOT_FOUND})

    set_sandbox_id(request.sandbox_id)
    logger.log_fix_event(request.sandbox_id, "fix_requested", error_count=len(request.errors))

    try:
        stream = await runtime_error_fixer.fix_runtime_errors(
            request.errors, provider, request.focus_files
        )
        try:
            first_chunk = await stream.__anext__()
        except StopAsyncIteration:
            first_chunk = ""
    except Exception as e:
        logger.log_error_with_context(e, context="fix_runtime_errors", sandbox=request.sandbox_id)
        return JSONResponse(status_code=500, content={"error": str(e)})

    return StreamingResponse(
        _relay(first_chunk, stream),
        media_type="text/plain; charset=utf-8",
    )


@router.post("/fix/apply")
async def apply_runtime_fix(raw_request: Request):
    """Write the <file> blocks of a fix response into the sandbox"""
    try:
        request = ApplyFixRequest.model_validate(await read_json_object(raw_request))
    except RequestBodyError as e:
        return JSONResponse(status_code=400, content={"error": describe_body_error(e)})

    if not request.sandbox_id or request.fixed_code is None:
        return JSONResponse(status_code=400, content={"error": MISSING_APPLY_FIELDS})

    provider = sandbox_manager.get_provider(request.sandbox_id)
    if provider is None:
        return JSONResponse(status_code=404, content={"error": PROVIDER_NOT_FOUND})

    set_sandbox_id(request.sandbox_id)
    result = await apply_fix(provider, request.fixed_code)
    return JSONResponse(status_code=200, content=result.to_wire())
