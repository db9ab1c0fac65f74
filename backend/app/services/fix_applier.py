"""
Fix Applier - turns model output into sandbox writes

The fixer returns <file path="...">...</file> blocks. Nothing is written
until a caller explicitly applies them. Every path is validated before the
first write, so a response containing one forbidden path writes nothing.
"""

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import List, Tuple

from app.core.exceptions import FixApplyError, ForbiddenPathError, PreviewGuardError
from app.core.logging_config import logger
from app.modules.sandbox.provider import SandboxProvider
from app.schemas.runtime import AutoFixResponse


FILE_BLOCK_PATTERN = re.compile(r'<file\s+path="([^"]+)"\s*>(.*?)</file>', re.DOTALL)
CODE_FENCE_PATTERN = re.compile(r'^```[\w+-]*\n(.*)\n```$', re.DOTALL)

# Files that are NEVER allowed to be modified
LOCK_FILES = frozenset({
    'package-lock.json', 'yarn.lock', 'pnpm-lock.yaml', 'bun.lockb',
})


@dataclass
class FileBlock:
    """One file the model wants written"""
    path: str
    content: str


def _clean_content(raw: str) -> str:
    content = raw
    if content.startswith("\n"):
        content = content[1:]
    if content.endswith("\n"):
        content = content[:-1]

    fenced = CODE_FENCE_PATTERN.match(content.strip())
    if fenced:
        content = fenced.group(1)
    return content


def parse_file_blocks(text: str) -> Tuple[List[FileBlock], str]:
    """
    Extract file blocks from model output.

    Returns:
        (blocks, explanation) where blocks keep first-seen order with the
        last block for a repeated path winning, and explanation is the text
        found outside any block
    """
    blocks = {}
    for match in FILE_BLOCK_PATTERN.finditer(text or ""):
        path = match.group(1).strip()
        blocks[path] = FileBlock(path=path, content=_clean_content(match.group(2)))

    explanation = FILE_BLOCK_PATTERN.sub("", text or "").strip()
    return list(blocks.values()), explanation


def check_writable_path(path: str) -> str:
    """
    Validate a model-supplied path. Returns the normalized relative path.

    Raises:
        ForbiddenPathError: absolute paths, parent traversal, .git, .env* and lock files
    """
    normalized = path.replace('\\', '/').strip()
    if not normalized:
        raise ForbiddenPathError(path, "empty path")
    if normalized.startswith('/') or re.match(r'^[A-Za-z]:/', normalized):
        raise ForbiddenPathError(path, "absolute paths are not allowed")

    parts = PurePosixPath(normalized).parts
    if '..' in parts:
        raise ForbiddenPathError(path, "parent directory traversal is not allowed")
    if '.git' in parts:
        raise ForbiddenPathError(path, "git metadata is read-only")

    name = parts[-1] if parts else normalized
    if name.startswith('.env'):
        raise ForbiddenPathError(path, "environment files are read-only")
    if name in LOCK_FILES:
        raise ForbiddenPathError(path, "lock files are read-only")

    return str(PurePosixPath(*[p for p in parts if p != '.']))


async def apply_fix_blocks(provider: SandboxProvider, blocks: List[FileBlock]) -> List[str]:
    """
    Write blocks into the sandbox.

    All paths are checked first; the first forbidden path aborts the whole
    apply before anything is written. A write that fails part-way raises
    FixApplyError listing the files already written.

    Returns:
        Paths written, in order
    """
    checked = [(check_writable_path(block.path), block) for block in blocks]

    modified: List[str] = []
    for path, block in checked:
        try:
            await provider.write_file(path, block.content)
        except (PreviewGuardError, OSError) as e:
            message = e.message if isinstance(e, PreviewGuardError) else str(e)
            raise FixApplyError(path, message, modified, provider.sandbox_id) from e
        modified.append(path)
        logger.log_fix_event(provider.sandbox_id, "file_written", file_path=path, size=len(block.content))

    return modified


async def apply_fix(provider: SandboxProvider, fixed_code: str) -> AutoFixResponse:
    """Parse model output and apply it, reporting the outcome as an AutoFixResponse"""
    blocks, explanation = parse_file_blocks(fixed_code)

    if not blocks:
        return AutoFixResponse(
            success=False,
            explanation=explanation,
            fixed_code=fixed_code,
            error="No <file> blocks found in fix output",
        )

    try:
        modified = await apply_fix_blocks(provider, blocks)
    except FixApplyError as e:
        logger.error(f"[AutoFix:{provider.sandbox_id}] Apply stopped after {e.written_files}: {e.message}")
        return AutoFixResponse(
            success=False,
            explanation=explanation,
            fixed_code=fixed_code,
            modified_files=e.written_files,
            error=e.message,
        )
    except PreviewGuardError as e:
        logger.warning(f"[AutoFix:{provider.sandbox_id}] Apply refused: {e.message}")
        return AutoFixResponse(
            success=False,
            explanation=explanation,
            fixed_code=fixed_code,
            error=e.message,
        )

    logger.log_fix_event(provider.sandbox_id, "fix_applied", modified_files=modified)
    return AutoFixResponse(
        success=True,
        explanation=explanation,
        fixed_code=fixed_code,
        modified_files=modified,
    )
