"""Tests for outreach LLM providers and email drafting."""

from types import ModuleType
from unittest.mock import MagicMock, patch

import pytest

from leadgen.core.config import OutreachConfig
from leadgen.core.schemas import ContactRecord, JobRecord
from leadgen.outreach.llm import available_providers, get_provider
from leadgen.outreach.llm.base import LLMProvider
from leadgen.outreach.writer import (
    build_email_prompt,
    build_system_prompt,
    generate_outreach_email,
)


class FakeLLM(LLMProvider):
    """Returns a canned reply (or raises it); records each call."""

    def __init__(self, reply: str | Exception = "Subject: Hello\n\nHi Anna") -> None:
        self._reply = reply
        self.calls: list[dict[str, object]] = []

    @property
    def provider_id(self) -> str:
        return "fake"

    @property
    def default_model(self) -> str:
        return "fake-1"

    @property
    def env_var(self) -> str:
        return "FAKE_API_KEY"

    def api_key(self) -> str:
        return "fake-key"

    def _import_sdk(self) -> ModuleType:
        return ModuleType("fake_sdk")

    def _send(
        self,
        sdk: ModuleType,
        api_key: str,
        prompt: str,
        model: str,
        system: str | None,
        max_tokens: int,
    ) -> str:
        self.calls.append(
            {"prompt": prompt, "model": model, "system": system, "max_tokens": max_tokens},
        )
        if isinstance(self._reply, Exception):
            raise self._reply
        return self._reply


def _job() -> JobRecord:
    return JobRecord(
        id="42",
        title="Senior UX Designer",
        company="Acme AG",
        location="Zürich",
        workload="80 – 100%",
    )


def _contact(**overrides: str) -> ContactRecord:
    fields = {"email": "anna@acme.ch", "first_name": "Anna", "position": "Head of Design"}
    fields.update(overrides)
    return ContactRecord(**fields)


# ---------------------------------------------------------------------------
# Registry tests
# ---------------------------------------------------------------------------
class TestProviderRegistry:
    def test_get_anthropic(self) -> None:
        provider = get_provider("anthropic")
        assert isinstance(provider, LLMProvider)
        assert provider.provider_id == "anthropic"
        assert provider.default_model == "claude-sonnet-4-20250514"
        assert provider.env_var == "ANTHROPIC_API_KEY"

    def test_get_openai(self) -> None:
        provider = get_provider("openai")
        assert provider.provider_id == "openai"
        assert provider.default_model == "gpt-4o-mini"
        assert provider.env_var == "OPENAI_API_KEY"

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown LLM provider 'gemini'"):
            get_provider("gemini")

    def test_available_providers_sorted(self) -> None:
        assert available_providers() == ["anthropic", "openai"]


# ---------------------------------------------------------------------------
# Provider tests
# ---------------------------------------------------------------------------
class TestOpenAIProvider:
    def test_missing_api_key(self) -> None:
        provider = get_provider("openai")
        with (
            patch.dict("os.environ", {}, clear=True),
            pytest.raises(ValueError, match="OPENAI_API_KEY"),
        ):
            provider.complete("prompt")

    def test_missing_sdk(self) -> None:
        provider = get_provider("openai")
        with (
            patch.dict("os.environ", {"OPENAI_API_KEY": "test-key"}),
            patch.dict("sys.modules", {"openai": None}),
            pytest.raises(ImportError, match="openai is required"),
        ):
            provider.complete("prompt")

    def test_sends_system_and_strips_reply(self) -> None:
        provider = get_provider("openai")
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value.choices = [
            MagicMock(message=MagicMock(content="  Subject: Hi  \n")),
        ]
        mock_openai = MagicMock()
        mock_openai.OpenAI.return_value = mock_client

        with (
            patch.dict("os.environ", {"OPENAI_API_KEY": "key"}),
            patch.dict("sys.modules", {"openai": mock_openai}),
        ):
            text = provider.complete("prompt", system="be brief", max_tokens=300)

        assert text == "Subject: Hi"
        call_kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert call_kwargs["model"] == "gpt-4o-mini"
        assert call_kwargs["max_tokens"] == 300
        assert call_kwargs["messages"][0] == {"role": "system", "content": "be brief"}


class TestAnthropicProvider:
    def test_missing_api_key(self) -> None:
        provider = get_provider("anthropic")
        with (
            patch.dict("os.environ", {}, clear=True),
            pytest.raises(ValueError, match="ANTHROPIC_API_KEY"),
        ):
            provider.complete("prompt")

    def test_missing_sdk(self) -> None:
        provider = get_provider("anthropic")
        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "test-key"}),
            patch.dict("sys.modules", {"anthropic": None}),
            pytest.raises(ImportError, match="anthropic is required"),
        ):
            provider.complete("prompt")

    def test_uses_custom_system(self) -> None:
        provider = get_provider("anthropic")
        mock_client = MagicMock()
        mock_message = MagicMock()
        mock_message.content = [MagicMock(text="ok")]
        mock_client.messages.create.return_value = mock_message
        mock_anthropic = MagicMock()
        mock_anthropic.Anthropic.return_value = mock_client

        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "key"}),
            patch.dict("sys.modules", {"anthropic": mock_anthropic}),
        ):
            assert provider.complete("text", system="custom system prompt") == "ok"

        call_kwargs = mock_client.messages.create.call_args.kwargs
        assert call_kwargs["system"] == "custom system prompt"

    def test_no_system_kwarg_when_absent(self) -> None:
        provider = get_provider("anthropic")
        mock_client = MagicMock()
        mock_client.messages.create.return_value.content = [MagicMock(text="ok")]
        mock_anthropic = MagicMock()
        mock_anthropic.Anthropic.return_value = mock_client

        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "key"}),
            patch.dict("sys.modules", {"anthropic": mock_anthropic}),
        ):
            provider.complete("text")

        assert "system" not in mock_client.messages.create.call_args.kwargs


# ---------------------------------------------------------------------------
# Prompt building
# ---------------------------------------------------------------------------
class TestPrompts:
    def test_system_prompt_names_sender_company(self) -> None:
        config = OutreachConfig(sender_company="PIXELCO")
        assert "PIXELCO" in build_system_prompt(config)

    def test_email_prompt_sections(self) -> None:
        prompt = build_email_prompt(_job(), _contact(), "UX Designer", OutreachConfig())

        for section in ("SENDER (Me):", "RECIPIENT:", "JOB CONTEXT:", "REQUIREMENTS:"):
            assert section in prompt
        assert "- Name: Anna" in prompt
        assert "- Position: Head of Design" in prompt
        assert "- Company: Acme AG" in prompt
        assert "- Job Title: Senior UX Designer" in prompt
        assert '- Original Search Term: "UX Designer"' in prompt
        assert "Thomas from DESIGNSNACK" in prompt

    def test_email_prompt_defaults(self) -> None:
        prompt = build_email_prompt(
            JobRecord(id="1", title="Designer"),
            _contact(first_name="", position=""),
            "designer",
            OutreachConfig(),
        )
        assert "- Name: there" in prompt
        assert "- Position: team member" in prompt
        assert "- Location: your location" in prompt


# ---------------------------------------------------------------------------
# Drafting
# ---------------------------------------------------------------------------
class TestGenerateOutreachEmail:
    def test_success(self) -> None:
        llm = FakeLLM()
        config = OutreachConfig(model="custom-model", max_tokens=400)

        draft = generate_outreach_email(_job(), _contact(), "UX Designer", llm, config)

        assert draft.success
        assert draft.email_content == "Subject: Hello\n\nHi Anna"
        assert draft.error is None
        assert draft.job.id == "42"
        assert llm.calls[0]["model"] == "custom-model"
        assert llm.calls[0]["max_tokens"] == 400
        assert "DESIGNSNACK" in str(llm.calls[0]["system"])

    def test_empty_response(self) -> None:
        draft = generate_outreach_email(
            _job(), _contact(), "UX Designer", FakeLLM(""), OutreachConfig(),
        )
        assert not draft.success
        assert draft.error == "Empty response from LLM"

    def test_provider_error_is_reported(self) -> None:
        draft = generate_outreach_email(
            _job(), _contact(), "UX Designer", FakeLLM(ValueError("OPENAI_API_KEY missing")),
            OutreachConfig(),
        )
        assert not draft.success
        assert draft.error == "OPENAI_API_KEY missing"
        assert draft.email_content == ""
