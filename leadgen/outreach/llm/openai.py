"""OpenAI chat-completions provider."""

from types import ModuleType

from leadgen.outreach.llm.base import DEFAULT_TEMPERATURE, LLMProvider


class OpenAIProvider(LLMProvider):
    sdk_module = "openai"
    sdk_extra = "openai"

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    @property
    def env_var(self) -> str:
        return "OPENAI_API_KEY"

    def _send(
        self,
        sdk: ModuleType,
        api_key: str,
        prompt: str,
        model: str,
        system: str | None,
        max_tokens: int,
    ) -> str:
        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})

        response = sdk.OpenAI(api_key=api_key).chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=DEFAULT_TEMPERATURE,
        )
        return response.choices[0].message.content or ""
