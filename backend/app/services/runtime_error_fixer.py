"""
Runtime Error Auto-Fixer

Turns the monitor's error list into a single Claude request:
1. Resolve a minimal working set of source files (focus files, always-relevant
   config/entry files, files named in error locations)
2. Read them through the sandbox provider (missing files are dropped)
3. Build a bounded prompt asking for <file path="..."> blocks
4. Hand back Claude's text stream unmodified

Applying the returned blocks is a separate, explicit step (fix_applier.py).
"""

import re
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional, Sequence

from app.core.config import settings
from app.core.exceptions import SandboxError, ValidationError
from app.core.logging_config import logger
from app.modules.sandbox.provider import SandboxProvider
from app.schemas.runtime import RuntimeErrorEntry
from app.utils.claude_client import ClaudeClient, get_claude_client


ALWAYS_RELEVANT_FILES: List[str] = [
    "package.json",
    "index.html",
    "src/index.css",   # Common source of styling errors
    "src/main.jsx",    # Entry point
]

SOURCE_ROOT = "src/"
COMPONENT_EXTENSIONS = (".jsx", ".tsx")

MESSAGE_FILENAME_PATTERN = re.compile(r'([a-zA-Z0-9_-]+\.(jsx|tsx|js|ts|css))')


SYSTEM_PROMPT = """You are an expert React/Vite debugger.
Your task is to fix the runtime errors detected in the application.

RULES:
1. Analyze the provided errors and file contents.
2. Fix the errors by modifying the code.
3. Return ONLY the fixed code blocks wrapped in <file path="..."> tags.
4. Do NOT remove existing functionality, only fix the specific errors.
5. If a file is missing (e.g., 404 error), create it.
6. If a package is missing, add it to package.json (but prefer using existing packages).
7. Be concise. Do not explain your reasoning, just provide the fixes.

Common Fixes:
- Missing Tailwind classes: Add them to index.css or check configuration.
- Missing imports: Add the import statement.
- Undefined variables: Define them or fix the reference.
- 404s: Create the missing file or fix the path.
"""

USER_PROMPT_TEMPLATE = """The following runtime errors were detected:

{error_list}

Here is the current code context:

{file_context}

Please fix these errors. Return the full content of any modified files."""


@dataclass
class FileContext:
    """A source file handed to the model, with the errors that point at it"""
    path: str
    content: str
    related_errors: List[RuntimeErrorEntry] = field(default_factory=list)


def normalize_source_path(path: str) -> str:
    """
    Map a reported source file onto a project-relative path.

    "/App.jsx" -> "src/App.jsx", "./src/main.jsx" -> "src/main.jsx".
    Applying it twice gives the same result as applying it once.
    """
    normalized = path
    while normalized.startswith(("/", "./")):
        normalized = normalized[1:] if normalized.startswith("/") else normalized[2:]

    if not normalized.startswith(SOURCE_ROOT) and normalized.endswith(COMPONENT_EXTENSIONS):
        normalized = SOURCE_ROOT + normalized
    return normalized


def find_message_filenames(errors: Sequence[RuntimeErrorEntry]) -> List[str]:
    """
    Bare filenames mentioned in error messages ("Cannot find Header.jsx").

    Advisory only: without a full path these cannot be read reliably, so
    they are logged for diagnostics and never added to the read set.
    """
    names: Dict[str, None] = {}
    for error in errors:
        match = MESSAGE_FILENAME_PATTERN.search(error.message or "")
        if match:
            names[match.group(1)] = None
    return list(names)


def resolve_relevant_files(
    errors: Sequence[RuntimeErrorEntry],
    focus_files: Optional[Sequence[str]] = None,
) -> List[str]:
    """Ordered, de-duplicated list of files to read for a fix request"""
    relevant: Dict[str, None] = {}

    for path in focus_files or []:
        if path:
            relevant[path] = None

    for path in ALWAYS_RELEVANT_FILES:
        relevant[path] = None

    for error in errors:
        if error.source and error.source.file:
            relevant[normalize_source_path(error.source.file)] = None

    return list(relevant)


async def load_file_contexts(
    provider: SandboxProvider,
    paths: Sequence[str],
    errors: Sequence[RuntimeErrorEntry] = (),
) -> List[FileContext]:
    """Read each path through the provider; unreadable files are skipped"""
    contexts: List[FileContext] = []

    for path in paths:
        try:
            content = await provider.read_file(path)
        except (SandboxError, ValidationError, OSError) as e:
            # Missing files may be the cause of the error itself (404s)
            logger.warning(f"[AutoFix:{provider.sandbox_id}] Failed to read file {path}: {e}")
            continue

        related = [
            e for e in errors
            if e.source and e.source.file and normalize_source_path(e.source.file) == path
        ]
        contexts.append(FileContext(path=path, content=content, related_errors=related))

    return contexts


def format_error_list(errors: Sequence[RuntimeErrorEntry]) -> str:
    blocks = []
    for error in errors:
        block = f"[{error.type.value.upper()}] {error.message}"
        if error.source:
            location = error.source.file
            if error.source.line is not None:
                location += f":{error.source.line}"
            block += f"\nLocation: {location}"
        blocks.append(block)
    return "\n\n".join(blocks)


def format_file_context(files: Sequence[FileContext]) -> str:
    return "\n\n".join(
        f'<file path="{f.path}">\n{f.content}\n</file>' for f in files
    )


def build_system_prompt() -> str:
    return SYSTEM_PROMPT


def build_user_prompt(errors: Sequence[RuntimeErrorEntry], files: Sequence[FileContext]) -> str:
    return USER_PROMPT_TEMPLATE.format(
        error_list=format_error_list(errors),
        file_context=format_file_context(files),
    )


class RuntimeErrorFixer:
    """Builds fix prompts from runtime errors and streams Claude's answer"""

    def __init__(self, client: Optional[ClaudeClient] = None):
        self._client = client

    @property
    def client(self) -> ClaudeClient:
        return self._client or get_claude_client()

    async def fix_runtime_errors(
        self,
        errors: Sequence[RuntimeErrorEntry],
        provider: SandboxProvider,
        focus_files: Optional[Sequence[str]] = None,
    ) -> AsyncIterator[str]:
        """
        Prepare the request and return the model's text stream.

        File reads happen here, before the stream is returned; generation
        failures surface on the first read from the stream.

        Args:
            errors: Errors reported by the runtime monitor (non-empty)
            provider: Sandbox to read source files from
            focus_files: Extra files the caller wants included, in order

        Returns:
            Async iterator of raw text chunks (<file path="..."> blocks)
        """
        if not errors:
            raise ValidationError("At least one runtime error is required", field="errors")

        sandbox_id = provider.sandbox_id
        paths = resolve_relevant_files(errors, focus_files)

        mentioned = find_message_filenames(errors)
        if mentioned:
            logger.debug(f"[AutoFix:{sandbox_id}] Filenames mentioned in messages (not read): {mentioned}")

        files = await load_file_contexts(provider, paths, errors)

        logger.log_fix_event(
            sandbox_id, "prompt_built",
            error_count=len(errors),
            requested_files=len(paths),
            loaded_files=len(files),
        )

        return self.client.generate_stream(
            prompt=build_user_prompt(errors, files),
            system_prompt=build_system_prompt(),
            model=settings.AUTOFIX_MODEL,
            max_tokens=settings.AUTOFIX_MAX_TOKENS,
            temperature=settings.AUTOFIX_TEMPERATURE,
        )


# Singleton instance
runtime_error_fixer = RuntimeErrorFixer()
