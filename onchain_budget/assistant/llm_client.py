"""OpenRouter LLM client with automatic cost tracking and retries."""

import asyncio
import os
import time
from typing import Optional

from openai import AsyncOpenAI, RateLimitError

from onchain_budget.utils.errors import LLMError
from onchain_budget.utils.logging import get_logger
from onchain_budget.utils.metrics import llm_api_latency, llm_cost_counter, llm_rate_limit_hits, llm_tokens_counter

logger = get_logger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "google/gemini-flash-1.5"

# Pricing per 1M tokens (input tokens, simplified)
MODEL_PRICING = {
    "google/gemini-flash-1.5": 0.075 / 1_000_000,
    "google/gemini-2.0-flash-001": 0.10 / 1_000_000,
    "anthropic/claude-haiku-4.5": 0.80 / 1_000_000,
    "openai/gpt-4o-mini": 0.15 / 1_000_000,
}


def calculate_cost(tokens: int, model: str) -> float:
    """
    Calculate cost based on token usage and model pricing.

    Args:
        tokens: Number of tokens used
        model: Model name

    Returns:
        Cost in USD
    """
    price_per_token = MODEL_PRICING.get(model, 0.15 / 1_000_000)
    return tokens * price_per_token


class LLMClient:
    """
    Chat-completions client for an OpenAI-compatible endpoint (OpenRouter).

    The underlying AsyncOpenAI client is created on first use, so a missing
    API key only fails the calls that need it.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        timeout: float = 60,
        max_retries: int = 3,
        client: Optional[AsyncOpenAI] = None
    ):
        self.api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        self.base_url = base_url or os.getenv("LLM_BASE_URL", OPENROUTER_BASE_URL)
        self.model = model or os.getenv("DEFAULT_LLM_MODEL", DEFAULT_MODEL)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.max_retries = max_retries
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise LLMError("OPENROUTER_API_KEY environment variable is not set")
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url, max_retries=0)
        return self._client

    async def complete(self, prompt: str, system_prompt: Optional[str] = None, purpose: str = "chat") -> str:
        """
        Call the LLM with automatic cost tracking and retries.

        Args:
            prompt: User prompt
            system_prompt: Optional system instruction
            purpose: What the call is for (for metrics)

        Returns:
            LLM response text

        Raises:
            LLMError: If the API call fails after retries or returns no text
        """
        client = self._get_client()
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        for attempt in range(self.max_retries):
            try:
                start_time = time.time()

                response = await client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    timeout=self.timeout
                )

                latency = time.time() - start_time
                tokens = response.usage.total_tokens if response.usage else 0
                cost = calculate_cost(tokens, self.model)

                llm_tokens_counter.labels(model_name=self.model, purpose=purpose).inc(tokens)
                llm_cost_counter.labels(model_name=self.model).inc(cost)
                llm_api_latency.labels(model_name=self.model).observe(latency)

                logger.info(
                    "LLM call successful",
                    model=self.model,
                    tokens=tokens,
                    cost=cost,
                    latency=latency,
                    purpose=purpose
                )

                content = response.choices[0].message.content if response.choices else None
                if not content or not content.strip():
                    raise LLMError("LLM returned an empty reply")
                return content

            except LLMError:
                raise
            except RateLimitError as e:
                llm_rate_limit_hits.labels(model_name=self.model).inc()
                logger.warning(f"Rate limit hit, retrying... (attempt {attempt + 1}/{self.max_retries})")
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(2 ** attempt)
                else:
                    raise LLMError(f"Rate limit exceeded after {self.max_retries} attempts: {e}")
            except Exception as e:
                logger.error(f"LLM API error: {e}", attempt=attempt)
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(1)
                else:
                    raise LLMError(f"LLM API call failed after {self.max_retries} attempts: {e}")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
