"""
HTTP client for the PreviewGuard API
"""

from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from cli.config import CLIConfig


class APIError(Exception):
    """Non-success response from the API"""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"API error ({status_code}): {message}")


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict):
        for key in ("error", "monitoringError", "detail", "message"):
            if data.get(key):
                value = data[key]
                return value.get("message", str(value)) if isinstance(value, dict) else str(value)
    return response.text


class PreviewGuardClient:
    """Thin async wrapper over the REST endpoints"""

    def __init__(self, config: CLIConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.api_base_url = config.api_base_url.rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport)

    async def monitor(
        self,
        sandbox_url: str,
        sandbox_id: str,
        timeout_ms: Optional[int] = None,
        error_types: Optional[List[str]] = None,
        capture_screenshots: bool = False,
    ) -> Dict[str, Any]:
        """Run a monitoring pass. Returns the result even when success is false."""
        payload: Dict[str, Any] = {
            "sandboxUrl": sandbox_url,
            "sandboxId": sandbox_id,
            "captureScreenshots": capture_screenshots,
        }
        if timeout_ms:
            payload["timeout"] = timeout_ms
        if error_types:
            payload["errorTypes"] = error_types

        async with self._client() as client:
            response = await client.post(f"{self.api_base_url}/runtime/monitor", json=payload)

        if response.status_code == 400:
            raise APIError(400, _error_message(response))
        # 200 and the 500 envelope share the MonitorResult shape
        return response.json()

    async def fix(
        self,
        sandbox_id: str,
        errors: List[Dict[str, Any]],
        focus_files: Optional[List[str]] = None,
    ) -> AsyncIterator[str]:
        """Stream fix text chunks as they arrive"""
        payload: Dict[str, Any] = {"sandboxId": sandbox_id, "errors": errors}
        if focus_files:
            payload["focusFiles"] = focus_files

        async with self._client() as client:
            async with client.stream("POST", f"{self.api_base_url}/runtime/fix", json=payload) as response:
                if response.status_code != 200:
                    await response.aread()
                    raise APIError(response.status_code, _error_message(response))
                async for chunk in response.aiter_text():
                    yield chunk

    async def apply(self, sandbox_id: str, fixed_code: str) -> Dict[str, Any]:
        payload = {"sandboxId": sandbox_id, "fixedCode": fixed_code}
        async with self._client() as client:
            response = await client.post(f"{self.api_base_url}/runtime/fix/apply", json=payload)

        if response.status_code != 200:
            raise APIError(response.status_code, _error_message(response))
        return response.json()

    async def register_sandbox(
        self,
        sandbox_id: str,
        root_dir: str,
        preview_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"sandboxId": sandbox_id, "rootDir": root_dir}
        if preview_url:
            payload["previewUrl"] = preview_url

        async with self._client() as client:
            response = await client.post(f"{self.api_base_url}/sandboxes", json=payload)

        if response.status_code not in (200, 201):
            raise APIError(response.status_code, _error_message(response))
        return response.json()
