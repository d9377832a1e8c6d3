"""Anthropic messages-API provider."""

from types import ModuleType
from typing import Any

from leadgen.outreach.llm.base import DEFAULT_TEMPERATURE, LLMProvider


class AnthropicProvider(LLMProvider):
    sdk_module = "anthropic"
    sdk_extra = "anthropic"

    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return "claude-sonnet-4-20250514"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY"

    def _send(
        self,
        sdk: ModuleType,
        api_key: str,
        prompt: str,
        model: str,
        system: str | None,
        max_tokens: int,
    ) -> str:
        # The API rejects system=None; leave it out instead.
        extra: dict[str, Any] = {"system": system} if system else {}
        message = sdk.Anthropic(api_key=api_key).messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=DEFAULT_TEMPERATURE,
            messages=[{"role": "user", "content": prompt}],
            **extra,
        )
        return "".join(getattr(block, "text", "") for block in message.content)
