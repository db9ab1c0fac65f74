from app.services.runtime_error_fixer import RuntimeErrorFixer, runtime_error_fixer
from app.services.fix_applier import FileBlock, apply_fix, apply_fix_blocks, parse_file_blocks

__all__ = [
    "RuntimeErrorFixer",
    "runtime_error_fixer",
    "FileBlock",
    "apply_fix",
    "apply_fix_blocks",
    "parse_file_blocks",
]
