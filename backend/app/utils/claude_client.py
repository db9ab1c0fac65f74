from anthropic import AsyncAnthropic, APIStatusError, APIError, APIConnectionError, APITimeoutError
from typing import Optional, Dict, List, AsyncGenerator
import asyncio
import random
import httpx
from app.core.config import settings
from app.core.exceptions import AIServiceError
from app.core.logging_config import logger

# Retry configuration - loaded from settings
MAX_RETRIES = settings.CLAUDE_MAX_RETRIES
BASE_DELAY = settings.CLAUDE_RETRY_BASE_DELAY
MAX_DELAY = settings.CLAUDE_RETRY_MAX_DELAY
REQUEST_TIMEOUT = float(settings.CLAUDE_REQUEST_TIMEOUT)
CONNECT_TIMEOUT = float(settings.CLAUDE_CONNECT_TIMEOUT)
RETRYABLE_ERRORS = ['overloaded_error', 'rate_limit_error', 'server_error']


class ClaudeClient:
    """Claude API client wrapper for streaming generation"""

    def __init__(self, api_key: Optional[str] = None):
        api_key = api_key or settings.ANTHROPIC_API_KEY
        if not api_key:
            raise AIServiceError("ANTHROPIC_API_KEY is not configured")

        client_kwargs = {"api_key": api_key}

        # Only set base_url if it's a non-empty string with actual content
        if settings.ANTHROPIC_BASE_URL and settings.ANTHROPIC_BASE_URL.strip():
            client_kwargs["base_url"] = settings.ANTHROPIC_BASE_URL.strip()
            logger.info(f"Using custom Claude API base URL: {settings.ANTHROPIC_BASE_URL}")

        # Configure timeouts for production reliability
        client_kwargs["timeout"] = httpx.Timeout(
            connect=CONNECT_TIMEOUT,
            read=REQUEST_TIMEOUT,
            write=REQUEST_TIMEOUT,
            pool=REQUEST_TIMEOUT
        )

        self.async_client = AsyncAnthropic(**client_kwargs)
        self.haiku_model = settings.CLAUDE_HAIKU_MODEL
        self.sonnet_model = settings.CLAUDE_SONNET_MODEL

        logger.info(f"Claude client initialized: timeout={REQUEST_TIMEOUT}s, models=[{self.haiku_model}, {self.sonnet_model}]")

    def _is_retryable_error(self, error: Exception) -> bool:
        """Check if an error is retryable (overload, rate limit, network issues, etc.)"""
        error_str = str(error).lower()

        # Network/connection errors are always retryable
        if isinstance(error, (APIConnectionError, APITimeoutError)):
            logger.warning(f"Network error detected (retryable): {type(error).__name__}")
            return True

        # httpx network errors
        if isinstance(error, (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError)):
            logger.warning(f"HTTPX network error detected (retryable): {type(error).__name__}")
            return True

        if isinstance(error, (APIStatusError, APIError)):
            # Check error type from API response
            if hasattr(error, 'body') and isinstance(error.body, dict):
                error_type = error.body.get('error', {}).get('type', '')
                return error_type in RETRYABLE_ERRORS
            # Check status code for server errors
            if hasattr(error, 'status_code'):
                return error.status_code in [429, 500, 502, 503, 529]

        # Fallback: check error message for network-related issues
        network_errors = ['overload', 'rate_limit', '529', '503', 'capacity',
                          'connection', 'timeout', 'network', 'dns', 'socket']
        return any(err in error_str for err in network_errors)

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay with exponential backoff and jitter"""
        delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY)
        # Add jitter (0-25% of delay)
        jitter = delay * random.uniform(0, 0.25)
        return delay + jitter

    def _model_name(self, model: str) -> str:
        return self.sonnet_model if model == "sonnet" else self.haiku_model

    async def generate_stream(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: str = "haiku",
        max_tokens: int = None,
        temperature: float = None,
        messages: Optional[List[Dict[str, str]]] = None
    ) -> AsyncGenerator[str, None]:
        """
        Generate streaming response from Claude

        Args:
            prompt: User prompt
            system_prompt: System prompt
            model: "haiku" or "sonnet"
            max_tokens: Maximum tokens to generate
            temperature: Temperature for generation
            messages: Optional list of previous messages for conversation

        Yields:
            Chunks of text as they arrive, unmodified
        """
        model_name = self._model_name(model)

        messages = list(messages or [])
        messages.append({
            "role": "user",
            "content": prompt
        })

        # Set defaults
        if max_tokens is None:
            max_tokens = settings.CLAUDE_MAX_TOKENS
        if temperature is None:
            temperature = settings.CLAUDE_TEMPERATURE

        prompt_preview = prompt[:100] + "..." if len(prompt) > 100 else prompt
        logger.info(f"Claude Streaming: model={model_name}, max_tokens={max_tokens}, temperature={temperature}, prompt_len={len(prompt)}")
        logger.debug(f"Claude streaming prompt: {prompt_preview}")

        last_error = None
        for attempt in range(MAX_RETRIES + 1):
            has_yielded = False
            try:
                async with self.async_client.messages.stream(
                    model=model_name,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    system=system_prompt if system_prompt else "",
                    messages=messages
                ) as stream:
                    async for text in stream.text_stream:
                        has_yielded = True
                        yield text

                    final_message = await stream.get_final_message()

                total_tokens = final_message.usage.input_tokens + final_message.usage.output_tokens
                logger.info(f"Claude Streaming response: id={final_message.id}, tokens={total_tokens}, stop={final_message.stop_reason}")
                return

            except Exception as e:
                last_error = e
                error_type = type(e).__name__
                # Only retry if we haven't started yielding yet (can't recover mid-stream)
                if not has_yielded and self._is_retryable_error(e) and attempt < MAX_RETRIES:
                    delay = self._calculate_retry_delay(attempt)
                    logger.warning(
                        f"Claude Streaming API error [{error_type}] (attempt {attempt + 1}/{MAX_RETRIES + 1}), retrying in {delay:.1f}s...",
                        extra={
                            "event_type": "claude_stream_retry",
                            "error_type": error_type,
                            "attempt": attempt + 1,
                            "retry_delay": delay
                        }
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(
                        f"Claude Streaming API error (non-retryable): {error_type}: {e}",
                        extra={
                            "event_type": "claude_stream_error",
                            "error_type": error_type,
                            "error_message": str(e),
                            "has_yielded": has_yielded,
                            "attempt": attempt + 1
                        }
                    )
                    raise

        if last_error:
            raise last_error


_claude_client: Optional[ClaudeClient] = None


def get_claude_client() -> ClaudeClient:
    """Create the shared client on first use so importing never needs a key"""
    global _claude_client
    if _claude_client is None:
        _claude_client = ClaudeClient()
    return _claude_client
