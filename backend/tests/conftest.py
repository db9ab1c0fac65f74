"""
PreviewGuard - Test Configuration and Fixtures
"""
import os
from pathlib import Path
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport

# Set testing environment before settings are created
os.environ['ENVIRONMENT'] = 'testing'
os.environ['LOG_FILE'] = ''
os.environ['ANTHROPIC_API_KEY'] = 'test-api-key'
os.environ['BROWSER_MODE'] = 'local'
os.environ['RUNTIME_ERROR_TYPES_STR'] = ''

from app.main import app
from app.modules.sandbox import LocalSandboxProvider, sandbox_manager
from app.schemas.runtime import ErrorSource, RuntimeErrorEntry, RuntimeErrorType
from tests.mocks.mock_claude import MockClaudeClient


@pytest.fixture(autouse=True)
def clean_sandbox_registry():
    """Every test starts with an empty sandbox registry"""
    sandbox_manager.clear()
    yield
    sandbox_manager.clear()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create test client against the ASGI app"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A minimal Vite/React project on disk"""
    (tmp_path / 'src').mkdir()
    (tmp_path / 'package.json').write_text('{"name": "demo", "dependencies": {"react": "^18.2.0"}}')
    (tmp_path / 'index.html').write_text('<div id="root"></div><script type="module" src="/src/main.jsx"></script>')
    (tmp_path / 'src' / 'main.jsx').write_text('import App from "./App";')
    (tmp_path / 'src' / 'App.jsx').write_text('export default function App() { return <Header />; }')
    return tmp_path


@pytest.fixture
def local_sandbox(project_dir: Path) -> LocalSandboxProvider:
    """Local sandbox over project_dir, registered as 'sb-test'"""
    provider = LocalSandboxProvider('sb-test', str(project_dir), preview_url='http://localhost:5173')
    sandbox_manager.register(provider)
    return provider


@pytest.fixture
def mock_claude() -> MockClaudeClient:
    return MockClaudeClient()


@pytest.fixture
def app_error() -> RuntimeErrorEntry:
    """Console error pointing at /App.jsx, as reported by the browser"""
    return RuntimeErrorEntry(
        type=RuntimeErrorType.CONSOLE_ERROR,
        severity='error',
        message='ReferenceError: Header is not defined',
        source=ErrorSource(file='/App.jsx', line=1, column=40),
    )
