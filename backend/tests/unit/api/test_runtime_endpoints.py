"""
Unit Tests for the runtime monitoring and auto-fix endpoints
"""
import pytest
from unittest.mock import patch

from app.core.config import settings
from app.modules.runtime_monitor.monitor import RuntimeMonitor
from app.schemas.runtime import MonitorConfig, RuntimeErrorType
from app.services.runtime_error_fixer import RuntimeErrorFixer
from tests.mocks.fake_browser import FakeBrowserProvider, FakePage, connection_refused, console
from tests.mocks.mock_claude import MockClaudeClient, DEFAULT_FIX_RESPONSE


API = f"/api/{settings.API_VERSION}/runtime"

FIX_ERRORS = [{
    "type": "console-error",
    "message": "ReferenceError: Header is not defined",
    "source": {"file": "/App.jsx", "line": 1, "column": 40},
}]


class RecordingMonitor:
    """Stand-in monitor that records the config it was given"""

    def __init__(self, page=None, error=None):
        self.page = page or FakePage()
        self.error = error
        self.configs = []

    async def monitor(self, config: MonitorConfig):
        self.configs.append(config)
        if self.error is not None:
            raise self.error
        return await RuntimeMonitor(browser_provider=FakeBrowserProvider(self.page)).monitor(config)


def patch_monitor(monitor):
    return patch("app.api.v1.endpoints.runtime.runtime_monitor", monitor)


def patch_fixer(mock_client):
    return patch(
        "app.api.v1.endpoints.runtime.runtime_error_fixer",
        RuntimeErrorFixer(client=mock_client),
    )


class TestMonitorEndpoint:
    """Tests for POST /runtime/monitor"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {},
        {"sandboxUrl": "http://localhost:5173"},
        {"sandboxId": "sb-1"},
        {"sandboxUrl": "", "sandboxId": "sb-1"},
    ])
    async def test_missing_fields(self, client, body):
        """Test 400 when sandboxUrl or sandboxId is missing"""
        response = await client.post(f"{API}/monitor", json=body)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "monitoringError": "Missing required fields: sandboxUrl and sandboxId",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [b"", b"not json", b"[1, 2]"])
    async def test_unreadable_body_is_missing_fields(self, client, content):
        """Test a body that is not a JSON object gets the missing fields 400"""
        response = await client.post(
            f"{API}/monitor", content=content, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["monitoringError"] == "Missing required fields: sandboxUrl and sandboxId"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,value", [
        ("timeout", "abc"),
        ("timeout", -5),
        ("captureScreenshots", "maybe"),
        ("errorTypes", "exception"),
    ])
    async def test_invalid_field_is_400(self, client, field, value):
        """Test badly typed fields get a 400 in the monitor error shape"""
        monitor = RecordingMonitor()

        with patch_monitor(monitor):
            response = await client.post(f"{API}/monitor", json={
                "sandboxUrl": "http://x",
                "sandboxId": "sb-1",
                field: value,
            })

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["monitoringError"].startswith("Invalid request body: ")
        assert field in data["monitoringError"]
        assert monitor.configs == []

    @pytest.mark.asyncio
    async def test_unknown_error_types_ignored(self, client):
        """Test unknown errorTypes names are dropped, not rejected"""
        monitor = RecordingMonitor()

        with patch_monitor(monitor):
            response = await client.post(f"{API}/monitor", json={
                "sandboxUrl": "http://x",
                "sandboxId": "sb-1",
                "errorTypes": ["syntax", "exception"],
            })

        assert response.status_code == 200
        assert monitor.configs[0].error_types == [RuntimeErrorType.EXCEPTION]

    @pytest.mark.asyncio
    async def test_success_camel_case(self, client):
        """Test a monitoring result is returned in camelCase"""
        monitor = RecordingMonitor(FakePage(events=[console("error", "boom at App (App.jsx:2:1)")]))

        with patch_monitor(monitor):
            response = await client.post(f"{API}/monitor", json={
                "sandboxUrl": "http://localhost:5173",
                "sandboxId": "sb-1",
            })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["sandboxId"] == "sb-1"
        assert data["hasErrors"] is True
        assert data["errors"][0]["type"] == "console-error"
        assert data["errors"][0]["source"] == {"file": "App.jsx", "line": 2, "column": 1}
        assert data["summary"]["totalErrors"] == 1
        assert "monitorDuration" in data

    @pytest.mark.asyncio
    async def test_default_timeout(self, client):
        """Test the configured navigation timeout is used when none is given"""
        monitor = RecordingMonitor()

        with patch_monitor(monitor):
            await client.post(f"{API}/monitor", json={"sandboxUrl": "http://x", "sandboxId": "sb-1"})

        assert monitor.configs[0].timeout == settings.RUNTIME_MONITOR_TIMEOUT_MS

    @pytest.mark.asyncio
    async def test_request_options_forwarded(self, client):
        """Test timeout, error types and screenshots reach the monitor"""
        monitor = RecordingMonitor()

        with patch_monitor(monitor):
            await client.post(f"{API}/monitor", json={
                "sandboxUrl": "http://x",
                "sandboxId": "sb-1",
                "timeout": 5000,
                "errorTypes": ["network-404", "exception"],
                "captureScreenshots": True,
            })

        config = monitor.configs[0]
        assert config.timeout == 5000
        assert config.error_types == [RuntimeErrorType.NETWORK_404, RuntimeErrorType.EXCEPTION]
        assert config.capture_screenshots is True

    @pytest.mark.asyncio
    async def test_navigation_failure_is_200(self, client):
        """Test an unreachable sandbox is a completed session, not a server fault"""
        monitor = RecordingMonitor(FakePage(goto_error=connection_refused()))

        with patch_monitor(monitor):
            response = await client.post(f"{API}/monitor", json={"sandboxUrl": "http://x", "sandboxId": "sb-1"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["hasErrors"] is True
        assert data["errors"][0]["severity"] == "critical"

    @pytest.mark.asyncio
    async def test_unexpected_fault_envelope(self, client):
        """Test unexpected faults return a zeroed 500 envelope"""
        monitor = RecordingMonitor(error=RuntimeError("browser exploded"))

        with patch_monitor(monitor):
            response = await client.post(f"{API}/monitor", json={"sandboxUrl": "http://x", "sandboxId": "sb-1"})

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["hasErrors"] is False
        assert data["errors"] == []
        assert data["warnings"] == []
        assert data["summary"] == {"totalErrors": 0, "consoleErrors": 0, "networkErrors": 0, "exceptions": 0}
        assert data["monitoringError"] == "browser exploded"


class TestFixEndpoint:
    """Tests for POST /runtime/fix"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"errors": FIX_ERRORS},
        {"sandboxId": "sb-test"},
        {"sandboxId": "sb-test", "errors": []},
    ])
    async def test_missing_fields(self, client, body):
        """Test 400 when sandboxId or errors is missing"""
        response = await client.post(f"{API}/fix", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing sandboxId or errors"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"sandboxId": "sb-test", "errors": "boom"},
        {"sandboxId": "sb-test", "errors": [{"type": "syntax", "message": "m"}]},
        {"sandboxId": "sb-test", "errors": FIX_ERRORS, "focusFiles": "src/App.jsx"},
    ])
    async def test_invalid_body_is_400(self, client, local_sandbox, body):
        """Test badly typed fields get a 400 in the fix error shape"""
        response = await client.post(f"{API}/fix", json=body)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request body: ")

    @pytest.mark.asyncio
    async def test_non_json_body(self, client):
        """Test a body that is not JSON gets the missing fields 400"""
        response = await client.post(
            f"{API}/fix", content=b"{oops", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Missing sandboxId or errors"}

    @pytest.mark.asyncio
    async def test_unknown_sandbox(self, client):
        """Test 404 when no provider is registered"""
        response = await client.post(f"{API}/fix", json={"sandboxId": "nope", "errors": FIX_ERRORS})

        assert response.status_code == 404
        assert response.json() == {"error": "Sandbox provider not found"}

    @pytest.mark.asyncio
    async def test_streams_fix(self, client, local_sandbox, mock_claude):
        """Test the model output is streamed as plain text"""
        with patch_fixer(mock_claude):
            response = await client.post(f"{API}/fix", json={"sandboxId": "sb-test", "errors": FIX_ERRORS})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == DEFAULT_FIX_RESPONSE
        assert '<file path="src/App.jsx">' in mock_claude.last_prompt

    @pytest.mark.asyncio
    async def test_non_utf8_file_skipped(self, client, local_sandbox, project_dir, mock_claude):
        """Test a binary file in the working set does not fail the request"""
        (project_dir / "src" / "index.css").write_bytes(b"/* caf\xe9 */")

        with patch_fixer(mock_claude):
            response = await client.post(f"{API}/fix", json={"sandboxId": "sb-test", "errors": FIX_ERRORS})

        assert response.status_code == 200
        assert response.text == DEFAULT_FIX_RESPONSE
        assert 'path="src/index.css"' not in mock_claude.last_prompt

    @pytest.mark.asyncio
    async def test_severity_optional_in_request(self, client, local_sandbox, mock_claude):
        """Test submitted errors may omit severity"""
        with patch_fixer(mock_claude):
            response = await client.post(f"{API}/fix", json={"sandboxId": "sb-test", "errors": FIX_ERRORS})

        assert response.status_code == 200
        assert mock_claude.call_count == 1

    @pytest.mark.asyncio
    async def test_generation_failure_is_500(self, client, local_sandbox):
        """Test a failing model call returns a JSON error"""
        failing = MockClaudeClient(error=RuntimeError("Claude API overloaded"))

        with patch_fixer(failing):
            response = await client.post(f"{API}/fix", json={"sandboxId": "sb-test", "errors": FIX_ERRORS})

        assert response.status_code == 500
        assert response.json() == {"error": "Claude API overloaded"}

    @pytest.mark.asyncio
    async def test_fix_does_not_write(self, client, local_sandbox, project_dir, mock_claude):
        """Test streaming a fix leaves the sandbox untouched"""
        original = (project_dir / "src" / "App.jsx").read_text()

        with patch_fixer(mock_claude):
            await client.post(f"{API}/fix", json={"sandboxId": "sb-test", "errors": FIX_ERRORS})

        assert (project_dir / "src" / "App.jsx").read_text() == original


class TestApplyEndpoint:
    """Tests for POST /runtime/fix/apply"""

    @pytest.mark.asyncio
    async def test_apply(self, client, local_sandbox, project_dir):
        """Test blocks are written and reported"""
        response = await client.post(f"{API}/fix/apply", json={
            "sandboxId": "sb-test",
            "fixedCode": DEFAULT_FIX_RESPONSE,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["modifiedFiles"] == ["src/App.jsx"]
        assert "Hello" in (project_dir / "src" / "App.jsx").read_text()

    @pytest.mark.asyncio
    async def test_apply_forbidden(self, client, local_sandbox):
        """Test refused paths are reported with success false"""
        response = await client.post(f"{API}/fix/apply", json={
            "sandboxId": "sb-test",
            "fixedCode": '<file path="../x.js">x</file>',
        })

        assert response.status_code == 200
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_apply_unknown_sandbox(self, client):
        """Test 404 when no provider is registered"""
        response = await client.post(f"{API}/fix/apply", json={"sandboxId": "nope", "fixedCode": "x"})

        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"sandboxId": "sb-test"},
        {"fixedCode": DEFAULT_FIX_RESPONSE},
        {"sandboxId": "", "fixedCode": DEFAULT_FIX_RESPONSE},
    ])
    async def test_apply_missing_fields(self, client, local_sandbox, body):
        """Test 400 when sandboxId or fixedCode is missing"""
        response = await client.post(f"{API}/fix/apply", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing sandboxId or fixedCode"}

    @pytest.mark.asyncio
    async def test_apply_invalid_body(self, client, local_sandbox):
        """Test a badly typed fixedCode gets a 400"""
        response = await client.post(f"{API}/fix/apply", json={"sandboxId": "sb-test", "fixedCode": ["x"]})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request body: ")
