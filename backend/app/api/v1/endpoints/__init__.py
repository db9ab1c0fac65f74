# API endpoints
from . import health, runtime, sandbox

__all__ = ["health", "runtime", "sandbox"]
