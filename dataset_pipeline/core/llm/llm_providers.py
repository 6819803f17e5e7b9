"""
LangChain chat models behind one constructor, selected by provider name.

Generation and judgment clients both sit on top of this; only Gemini and
OpenAI-compatible backends (OpenAI itself and OpenRouter) are installed by
default, Claude and local Ollama models need their extras.
"""

import os
import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from langchain_core.messages import HumanMessage, SystemMessage

try:
    from langchain_openai import ChatOpenAI
except ImportError:
    ChatOpenAI = None

try:
    from langchain_anthropic import ChatAnthropic
except ImportError:
    ChatAnthropic = None

try:
    from langchain_google_genai import ChatGoogleGenerativeAI
except ImportError:
    ChatGoogleGenerativeAI = None

try:
    from langchain_ollama import ChatOllama
except ImportError:
    ChatOllama = None

from dataset_pipeline.core.utils.helpers import log_message
from dataset_pipeline.errors import ConfigurationError

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OLLAMA_BASE_URL = "http://localhost:11434"


class LLMProvider(Enum):
    GEMINI = "gemini"
    OPENROUTER = "openrouter"
    OPENAI = "openai"
    CLAUDE = "claude"
    LOCAL = "local"


# First entry is the default model
PROVIDER_MODELS: Dict[LLMProvider, List[str]] = {
    LLMProvider.GEMINI: ["gemini-1.5-flash-latest", "gemini-1.5-pro-latest", "gemini-2.0-flash"],
    LLMProvider.OPENROUTER: ["anthropic/claude-3-haiku", "openai/gpt-4o-mini", "meta-llama/llama-3.1-70b-instruct"],
    LLMProvider.OPENAI: ["gpt-4o-mini", "gpt-4o", "gpt-4-turbo"],
    LLMProvider.CLAUDE: ["claude-3-5-sonnet-20241022", "claude-3-haiku-20240307"],
    LLMProvider.LOCAL: ["llama3", "mistral", "qwen2.5"],
}

OLLAMA_OPTIONS = {"top_k", "top_p", "repeat_penalty", "stop", "keep_alive", "reasoning"}


def _as_provider(provider: Union[str, LLMProvider]) -> LLMProvider:
    if isinstance(provider, LLMProvider):
        return provider
    try:
        return LLMProvider(provider.lower())
    except ValueError:
        known = ", ".join(p.value for p in LLMProvider)
        raise ConfigurationError(f"Unsupported provider '{provider}'. Choose one of: {known}") from None


def _require(cls, package: str):
    if cls is None:
        raise ConfigurationError(f"{package} not installed. Run: pip install {package}")
    return cls


class UnifiedLLMProvider:
    """One configured chat model, re-created on demand for other sampling settings."""

    def __init__(
        self,
        provider: Union[str, LLMProvider] = LLMProvider.GEMINI,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        **kwargs
    ):
        self.provider = _as_provider(provider)
        self.model = model or PROVIDER_MODELS[self.provider][0]
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.kwargs = kwargs
        self._api_key = api_key

        self.llm = self._build(temperature, max_tokens)
        self._variants: Dict[Tuple[float, int], Any] = {(temperature, max_tokens): self.llm}
        self._variants_lock = threading.Lock()

        log_message(f"Initialized {self.provider.value} with model: {self.model}")

    # ------------------------------------------------------------------
    # Chat model construction
    # ------------------------------------------------------------------

    def _gemini(self, temperature: float, max_tokens: int):
        chat_cls = _require(ChatGoogleGenerativeAI, "langchain-google-genai")
        return chat_cls(
            model=self.model,
            temperature=temperature,
            max_output_tokens=max_tokens,
            google_api_key=self._api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY"),
            **self.kwargs,
        )

    def _openai_compatible(self, temperature: float, max_tokens: int):
        chat_cls = _require(ChatOpenAI, "langchain-openai")
        options = dict(self.kwargs)
        if self.provider == LLMProvider.OPENROUTER:
            options.setdefault("base_url", os.getenv("OPENROUTER_BASE_URL", OPENROUTER_BASE_URL))
            api_key = self._api_key or os.getenv("OPENROUTER_API_KEY")
        else:
            api_key = self._api_key or os.getenv("OPENAI_API_KEY")
        return chat_cls(model=self.model, temperature=temperature, max_tokens=max_tokens, api_key=api_key, **options)

    def _claude(self, temperature: float, max_tokens: int):
        chat_cls = _require(ChatAnthropic, "langchain-anthropic")
        return chat_cls(
            model=self.model,
            temperature=temperature,
            max_tokens=max_tokens,
            api_key=self._api_key or os.getenv("ANTHROPIC_API_KEY"),
            **self.kwargs,
        )

    def _local(self, temperature: float, max_tokens: int):
        chat_cls = _require(ChatOllama, "langchain-ollama")
        return chat_cls(
            model=self.model,
            temperature=temperature,
            num_predict=max_tokens,
            base_url=self.kwargs.get("base_url", os.getenv("OLLAMA_BASE_URL", OLLAMA_BASE_URL)),
            **{k: v for k, v in self.kwargs.items() if k in OLLAMA_OPTIONS},
        )

    def _build(self, temperature: float, max_tokens: int):
        builders: Dict[LLMProvider, Callable[[float, int], Any]] = {
            LLMProvider.GEMINI: self._gemini,
            LLMProvider.OPENROUTER: self._openai_compatible,
            LLMProvider.OPENAI: self._openai_compatible,
            LLMProvider.CLAUDE: self._claude,
            LLMProvider.LOCAL: self._local,
        }
        try:
            return builders[self.provider](temperature, max_tokens)
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to initialize {self.provider.value} LLM: {e}") from e

    def _llm_for(self, temperature: Optional[float], max_tokens: Optional[int]):
        key = (
            self.temperature if temperature is None else temperature,
            self.max_tokens if max_tokens is None else max_tokens,
        )
        # Reached from validator worker threads
        with self._variants_lock:
            if key not in self._variants:
                self._variants[key] = self._build(*key)
            return self._variants[key]

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def invoke(
        self,
        prompt: str,
        system_message: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        """Send one prompt and return the provider's raw message object."""
        messages = [SystemMessage(content=system_message)] if system_message else []
        messages.append(HumanMessage(content=prompt))
        return self._llm_for(temperature, max_tokens).invoke(messages)

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "provider": self.provider.value,
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "llm_type": type(self.llm).__name__,
        }

    @classmethod
    def get_available_providers(cls) -> List[str]:
        return [provider.value for provider in LLMProvider]

    @classmethod
    def get_provider_models(cls, provider: Union[str, LLMProvider]) -> List[str]:
        return list(PROVIDER_MODELS[_as_provider(provider)])
