"""Abstract base class for outreach LLM providers.

Subclasses name their SDK and API-key variable and implement ``_send``;
key lookup, lazy SDK import, model defaulting and whitespace trimming
happen here.
"""

import importlib
import logging
import os
from abc import ABC, abstractmethod
from types import ModuleType

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 0.7


class LLMProvider(ABC):
    """Base class that every LLM provider must implement."""

    #: Importable SDK module and the pip extra that installs it.
    sdk_module: str = ""
    sdk_extra: str = ""

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'openai')."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str:
        """Environment variable name for the API key."""

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> str:
        """Send a prompt to the LLM and return the trimmed response text.

        Args:
            prompt: User message.
            model: Override the provider's default model. None uses default.
            system: Optional system prompt.
            max_tokens: Upper bound on the response length.

        Raises:
            ValueError: The API key environment variable is not set.
            ImportError: The provider SDK is not installed.
        """
        api_key = self.api_key()
        sdk = self._import_sdk()
        use_model = model or self.default_model
        logger.info("Sending prompt to %s (%s)...", self.provider_id, use_model)
        text = self._send(sdk, api_key, prompt, use_model, system, max_tokens)
        return text.strip()

    def api_key(self) -> str:
        key = os.environ.get(self.env_var)
        if not key:
            msg = f"{self.env_var} environment variable is required"
            raise ValueError(msg)
        return key

    def _import_sdk(self) -> ModuleType:
        try:
            return importlib.import_module(self.sdk_module)
        except ImportError:
            msg = (
                f"{self.sdk_module} is required for outreach drafting. "
                f"Install with: pip install 'leadgen-pipeline[{self.sdk_extra}]'"
            )
            raise ImportError(msg) from None

    @abstractmethod
    def _send(
        self,
        sdk: ModuleType,
        api_key: str,
        prompt: str,
        model: str,
        system: str | None,
        max_tokens: int,
    ) -> str:
        """Make the API call and return the raw response text."""
