"""
Custom Exceptions for PreviewGuard
==================================

Use these instead of generic Exception to:
1. Make errors more specific and debuggable
2. Enable proper error handling at API layer
3. Provide meaningful error messages to users

Usage:
    from app.core.exceptions import SandboxNotFoundError

    provider = sandbox_manager.get_provider(sandbox_id)
    if provider is None:
        raise SandboxNotFoundError(sandbox_id)
"""

from typing import Optional, Any, Dict, List


class PreviewGuardError(Exception):
    """Base exception for all PreviewGuard errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(PreviewGuardError):
    """Input validation failed"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class ForbiddenPathError(ValidationError):
    """A fix tried to write somewhere it must not"""

    def __init__(self, path: str, reason: str = "path is not writable"):
        super().__init__(f"Refusing to write '{path}': {reason}")
        self.code = "FORBIDDEN_PATH"
        self.details = {"path": path, "reason": reason}


# ============================================
# Sandbox Errors
# ============================================

class SandboxError(PreviewGuardError):
    """Sandbox operation failed"""

    def __init__(self, message: str, sandbox_id: Optional[str] = None):
        super().__init__(message, code="SANDBOX_ERROR")
        if sandbox_id:
            self.details["sandbox_id"] = sandbox_id


class SandboxNotFoundError(SandboxError):
    """No provider registered for the sandbox"""

    def __init__(self, sandbox_id: str):
        super().__init__(f"Sandbox '{sandbox_id}' not found", sandbox_id)
        self.code = "SANDBOX_NOT_FOUND"


class SandboxFileNotFoundError(SandboxError):
    """File does not exist inside the sandbox"""

    def __init__(self, file_path: str, sandbox_id: Optional[str] = None):
        super().__init__(f"File '{file_path}' not found in sandbox", sandbox_id)
        self.code = "SANDBOX_FILE_NOT_FOUND"
        self.details["file_path"] = file_path


class FixApplyError(SandboxError):
    """A fix stopped part-way; earlier files were already written"""

    def __init__(self, file_path: str, message: str, written_files: List[str], sandbox_id: Optional[str] = None):
        super().__init__(f"Failed to write '{file_path}': {message}", sandbox_id)
        self.code = "FIX_APPLY_FAILED"
        self.written_files = list(written_files)
        self.details["file_path"] = file_path
        self.details["written_files"] = self.written_files


class SandboxCommandError(SandboxError):
    """Command could not be executed inside the sandbox"""

    def __init__(self, command: str, message: str, sandbox_id: Optional[str] = None):
        super().__init__(f"Command failed to run: {message}", sandbox_id)
        self.code = "SANDBOX_COMMAND_FAILED"
        self.details["command"] = command[:200]


# ============================================
# Browser / Monitoring Errors
# ============================================

class BrowserLaunchError(PreviewGuardError):
    """Headless browser could not be started"""

    def __init__(self, message: str, mode: Optional[str] = None):
        super().__init__(f"Failed to launch browser: {message}", code="BROWSER_LAUNCH_FAILED")
        if mode:
            self.details["mode"] = mode


# ============================================
# AI/Claude Errors
# ============================================

class AIServiceError(PreviewGuardError):
    """AI service (Claude) error"""

    def __init__(self, message: str):
        super().__init__(message, code="AI_SERVICE_ERROR")


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: PreviewGuardError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
