"""
Pydantic schemas for request/response validation
"""

from app.schemas.runtime import (
    RuntimeErrorType,
    RuntimeErrorSeverity,
    SEVERITY_BY_TYPE,
    ErrorSource,
    RuntimeErrorEntry,
    MonitorConfig,
    MonitorSummary,
    MonitorResult,
    MonitorRuntimeRequest,
    AutoFixRequest,
    ApplyFixRequest,
    AutoFixResponse,
)
from app.schemas.sandbox import (
    RegisterSandboxRequest,
    SandboxInfoResponse,
    SandboxListResponse,
)

__all__ = [
    # Runtime monitoring
    "RuntimeErrorType",
    "RuntimeErrorSeverity",
    "SEVERITY_BY_TYPE",
    "ErrorSource",
    "RuntimeErrorEntry",
    "MonitorConfig",
    "MonitorSummary",
    "MonitorResult",
    "MonitorRuntimeRequest",
    # Auto-fix
    "AutoFixRequest",
    "ApplyFixRequest",
    "AutoFixResponse",
    # Sandboxes
    "RegisterSandboxRequest",
    "SandboxInfoResponse",
    "SandboxListResponse",
]
