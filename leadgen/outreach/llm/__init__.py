"""Outreach LLM providers, looked up by the name used in ``outreach.provider``.

Provider modules are imported on first use so that neither SDK is needed
unless drafting is actually requested::

    provider = get_provider(settings.outreach.provider)
    draft = generate_outreach_email(job, contact, term, provider, settings.outreach)
"""

import importlib

from leadgen.outreach.llm.base import LLMProvider

__all__ = ["LLMProvider", "available_providers", "get_provider"]

_PROVIDERS: dict[str, str] = {
    "anthropic": "leadgen.outreach.llm.anthropic:AnthropicProvider",
    "openai": "leadgen.outreach.llm.openai:OpenAIProvider",
}


def get_provider(name: str) -> LLMProvider:
    """Instantiate the provider registered under name.

    Raises:
        ValueError: If no provider has that name.
    """
    target = _PROVIDERS.get(name)
    if target is None:
        msg = f"Unknown LLM provider '{name}'. Available: {', '.join(available_providers())}"
        raise ValueError(msg)

    module_path, _, class_name = target.partition(":")
    provider_cls: type[LLMProvider] = getattr(importlib.import_module(module_path), class_name)
    return provider_cls()


def available_providers() -> list[str]:
    return sorted(_PROVIDERS)
