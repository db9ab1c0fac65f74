"""
Pydantic schemas for runtime monitoring and auto-fix

Wire format is camelCase (sandboxUrl, statusCode, hasErrors ...) so the
preview UI can consume results unchanged; Python code uses snake_case.
"""

import time
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def new_error_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds"""
    return int(time.time() * 1000)


class RuntimeErrorType(str, Enum):
    """Type of runtime error detected"""
    CONSOLE_ERROR = "console-error"      # console.error()
    CONSOLE_WARNING = "console-warning"  # console.warn()
    NETWORK_404 = "network-404"          # HTTP 404 Not Found
    NETWORK_500 = "network-500"          # HTTP 500+ Server Error
    EXCEPTION = "exception"              # Uncaught JavaScript exception
    NETWORK_OTHER = "network-other"      # Other 4xx / transport failures


class RuntimeErrorSeverity(str, Enum):
    """Severity level of the error (critical > error > warning > info)"""
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


SEVERITY_BY_TYPE: Dict[RuntimeErrorType, RuntimeErrorSeverity] = {
    RuntimeErrorType.CONSOLE_ERROR: RuntimeErrorSeverity.ERROR,
    RuntimeErrorType.CONSOLE_WARNING: RuntimeErrorSeverity.WARNING,
    RuntimeErrorType.NETWORK_404: RuntimeErrorSeverity.ERROR,
    RuntimeErrorType.NETWORK_500: RuntimeErrorSeverity.CRITICAL,
    RuntimeErrorType.EXCEPTION: RuntimeErrorSeverity.CRITICAL,
    RuntimeErrorType.NETWORK_OTHER: RuntimeErrorSeverity.WARNING,
}

BLOCKING_SEVERITIES = frozenset({RuntimeErrorSeverity.CRITICAL, RuntimeErrorSeverity.ERROR})


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class ErrorSource(CamelModel):
    """File/line/column where an error originated (best-effort)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    file: str
    line: Optional[int] = None
    column: Optional[int] = None


class RuntimeErrorEntry(CamelModel):
    """A single detected runtime anomaly. Immutable once created."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=new_error_id)
    type: RuntimeErrorType
    severity: RuntimeErrorSeverity
    message: str
    stack: Optional[str] = None
    url: Optional[str] = None
    status_code: Optional[int] = None
    timestamp: int = Field(default_factory=now_ms)
    source: Optional[ErrorSource] = None

    @model_validator(mode="before")
    @classmethod
    def _derive_severity(cls, data: Any) -> Any:
        # Entries submitted by clients may omit severity; derive it from type.
        if isinstance(data, dict) and not data.get("severity") and data.get("type"):
            try:
                data = dict(data)
                data["severity"] = SEVERITY_BY_TYPE[RuntimeErrorType(data["type"])]
            except ValueError:
                pass
        return data

    @property
    def is_blocking(self) -> bool:
        return self.severity in BLOCKING_SEVERITIES


class MonitorConfig(CamelModel):
    """Input to one monitoring session"""
    sandbox_url: str
    sandbox_id: str
    timeout: Optional[int] = Field(None, gt=0, description="Navigation timeout (ms)")
    error_types: Optional[List[RuntimeErrorType]] = None
    capture_screenshots: bool = False

    def should_capture(self, error_type: RuntimeErrorType) -> bool:
        """Allow-list check; an empty or missing list captures everything"""
        if not self.error_types:
            return True
        return error_type in self.error_types


class MonitorSummary(CamelModel):
    total_errors: int = 0
    console_errors: int = 0
    network_errors: int = 0
    exceptions: int = 0


class MonitorResult(CamelModel):
    """Output of one monitoring session"""
    success: bool
    sandbox_id: str
    has_errors: bool
    errors: List[RuntimeErrorEntry] = Field(default_factory=list)
    warnings: List[RuntimeErrorEntry] = Field(default_factory=list)
    summary: MonitorSummary = Field(default_factory=MonitorSummary)
    monitor_duration: int = 0
    monitoring_error: Optional[str] = None
    screenshot: Optional[str] = Field(None, description="Base64 PNG, only when requested and errors exist")

    @classmethod
    def failure_envelope(cls, message: str, duration_ms: int, sandbox_id: str = "") -> "MonitorResult":
        """Generic envelope for unexpected monitoring faults (zeroed summary)"""
        return cls(
            success=False,
            sandbox_id=sandbox_id,
            has_errors=False,
            monitor_duration=duration_ms,
            monitoring_error=message,
        )


# ============================================
# HTTP request bodies
# ============================================

class MonitorRuntimeRequest(CamelModel):
    """Body for POST /runtime/monitor. Required fields are checked by the endpoint."""
    sandbox_url: Optional[str] = None
    sandbox_id: Optional[str] = None
    timeout: Optional[int] = Field(None, gt=0)
    error_types: Optional[List[RuntimeErrorType]] = None
    capture_screenshots: bool = False

    @field_validator("error_types", mode="before")
    @classmethod
    def drop_unknown_error_types(cls, value: Any) -> Any:
        """Unknown type names are ignored, as in RUNTIME_ERROR_TYPES_STR"""
        if not isinstance(value, list):
            return value
        known = {t.value for t in RuntimeErrorType}
        return [t for t in value if isinstance(t, str) and t in known]


class AutoFixRequest(CamelModel):
    """Body for POST /runtime/fix"""
    sandbox_id: Optional[str] = None
    errors: Optional[List[RuntimeErrorEntry]] = None
    focus_files: Optional[List[str]] = None


class ApplyFixRequest(CamelModel):
    """Body for POST /runtime/fix/apply"""
    sandbox_id: Optional[str] = None
    fixed_code: Optional[str] = None


class AutoFixResponse(CamelModel):
    """Result of applying model output to a sandbox"""
    success: bool
    explanation: str = ""
    fixed_code: str = ""
    modified_files: List[str] = Field(default_factory=list)
    error: Optional[str] = None
