"""
生成服务客户端 - OpenAI兼容的对话补全
Every failure leaves this module as an UpstreamServiceError subclass.
"""
import asyncio
from typing import Optional, Protocol

import httpx
import openai
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
)

from correction_engine.core.config import Settings
from correction_engine.core.errors import (
    RateLimitedError,
    UpstreamConfigurationError,
    UpstreamServiceError,
    UpstreamTimeoutError,
)
from correction_engine.core.logging import LogEvent
from correction_engine.services.base_service import BaseService
from correction_engine.services.types import GenerationRequest


class TextGenerator(Protocol):
    """Anything that turns a prompt into raw model text."""

    async def generate(self, request: GenerationRequest) -> str:
        ...


def _is_transient(exc: BaseException) -> bool:
    # APITimeoutError subclasses APIConnectionError but is reported, not retried
    return isinstance(exc, openai.APIConnectionError) and not isinstance(exc, openai.APITimeoutError)


class OpenAIGenerationClient(BaseService):
    """对话补全客户端 - 保持简单"""

    def __init__(self, settings: Settings = None, client: Optional[openai.AsyncOpenAI] = None):
        super().__init__(settings)
        self.client = client
        self.model = self.settings.generation_model
        self.timeout = self.settings.generation_timeout
        self.retry_wait = wait_exponential(multiplier=1, min=1, max=10)

    def _initialize(self):
        """初始化OpenAI客户端"""
        if self.client is not None:
            return
        if not self.settings.has_generation_credentials:
            raise UpstreamConfigurationError()
        self.client = openai.AsyncOpenAI(
            api_key=self.settings.openai_api_key,
            base_url=self.settings.openai_base_url,
            timeout=httpx.Timeout(self.timeout),
            # retries are driven by tenacity below
            max_retries=0,
        )

    async def generate(self, request: GenerationRequest) -> str:
        """Send one chat completion and return the assistant text ("" when absent)."""
        self._ensure_initialized()
        self.logger.info(
            LogEvent.GENERATION_CALL,
            model=self.model,
            prompt_length=len(request.prompt),
            max_tokens=request.max_tokens,
        )

        try:
            # One deadline covers every attempt and the waits between them
            completion = await asyncio.wait_for(self._create_with_retry(request), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise self._failed(UpstreamTimeoutError(self.timeout, original_error=exc), exc) from exc
        except openai.APIError as exc:
            raise self._failed(self._translate(exc), exc) from exc

        content = ""
        if completion.choices:
            content = completion.choices[0].message.content or ""

        usage = getattr(completion, "usage", None)
        self.logger.info(
            LogEvent.GENERATION_SUCCESS,
            model=self.model,
            response_length=len(content),
            total_tokens=getattr(usage, "total_tokens", None),
        )
        return content

    async def _create_with_retry(self, request: GenerationRequest):
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.generation_max_attempts) | stop_after_delay(self.timeout),
            wait=self.retry_wait,
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        completion = None
        async for attempt in retrying:
            with attempt:
                completion = await self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": request.system_prompt},
                        {"role": "user", "content": request.prompt},
                    ],
                    max_tokens=request.max_tokens,
                    temperature=request.temperature,
                )
        return completion

    def _failed(self, error: UpstreamServiceError, exc: Exception) -> UpstreamServiceError:
        self.logger.error(
            LogEvent.GENERATION_ERROR,
            model=self.model,
            error_code=error.error_code.value,
            upstream_status=error.upstream_status,
            error=str(exc) or exc.__class__.__name__,
        )
        return error

    def _translate(self, exc: openai.APIError) -> UpstreamServiceError:
        """Map an SDK exception onto the application error hierarchy."""
        if isinstance(exc, openai.APITimeoutError):
            return UpstreamTimeoutError(self.timeout, original_error=exc)
        if isinstance(exc, openai.RateLimitError):
            return RateLimitedError(original_error=exc)
        if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
            return UpstreamConfigurationError(
                "credentials rejected",
                upstream_status=exc.status_code,
                original_error=exc,
            )
        if isinstance(exc, openai.APIStatusError):
            return UpstreamServiceError(
                f"HTTP {exc.status_code}",
                upstream_status=exc.status_code,
                original_error=exc,
            )
        if isinstance(exc, openai.APIConnectionError):
            return UpstreamServiceError("connection failed", original_error=exc)
        return UpstreamServiceError(str(exc) or exc.__class__.__name__, original_error=exc)

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
