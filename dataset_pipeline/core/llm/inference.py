"""
Request/response boundary to generative and judgment backends.

Pipeline stages only ever see ``InferenceClient``; which backend sits
behind it is decided once, from configuration, by ``build_inference_client``.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from dataset_pipeline.config import PipelineConfig
from dataset_pipeline.core.llm.llm_providers import UnifiedLLMProvider
from dataset_pipeline.core.utils.helpers import log_message
from dataset_pipeline.errors import InferenceError

_THINK_RE = re.compile(r"<think>.*?</think>", re.DOTALL)


@dataclass(frozen=True)
class InferenceOptions:
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None


def _text_from_parts(parts) -> str:
    chunks = []
    for part in parts:
        if isinstance(part, str):
            chunks.append(part)
        elif isinstance(part, dict) and isinstance(part.get("text"), str):
            chunks.append(part["text"])
    return "".join(chunks)


def normalize_response_text(raw: Any) -> str:
    """Reduce a provider response envelope to its plain text content."""
    if raw is None:
        return ""
    if hasattr(raw, "content") and not isinstance(raw, dict):
        raw = raw.content

    if isinstance(raw, list):
        text = _text_from_parts(raw)
    elif isinstance(raw, dict):
        if raw.get("choices"):
            message = raw["choices"][0].get("message") or {}
            content = message.get("content") or raw["choices"][0].get("text") or ""
            text = _text_from_parts(content) if isinstance(content, list) else str(content)
        elif raw.get("candidates"):
            parts = ((raw["candidates"][0].get("content") or {}).get("parts")) or []
            text = _text_from_parts(parts)
        elif "content" in raw:
            content = raw["content"]
            text = _text_from_parts(content) if isinstance(content, list) else str(content or "")
        else:
            text = ""
    else:
        text = str(raw)

    return _THINK_RE.sub("", text).strip()


class InferenceClient(ABC):
    """Stateless prompt-in, text-out boundary with generate and judge capabilities."""

    name: str = "inference"

    def __init__(self, generate_options: InferenceOptions = None, judge_options: InferenceOptions = None):
        self.generate_options = generate_options or InferenceOptions()
        self.judge_options = judge_options or InferenceOptions(temperature=0.1)

    @abstractmethod
    def complete(self, prompt: str, options: InferenceOptions) -> str:
        """Send a prompt and return plain response text; raise InferenceError on transport failure."""
        ...

    def _call(self, prompt: str, options: InferenceOptions) -> str:
        try:
            return self.complete(prompt, options)
        except InferenceError:
            raise
        except Exception as e:
            # Stages handle only InferenceError
            raise InferenceError(f"{self.name} request failed: {type(e).__name__}: {e}", provider=self.name, cause=e) from e

    def generate(self, prompt: str, options: Optional[InferenceOptions] = None) -> str:
        return self._call(prompt, options or self.generate_options)

    def judge(self, prompt: str, options: Optional[InferenceOptions] = None) -> str:
        return self._call(prompt, options or self.judge_options)


class LangChainInferenceClient(InferenceClient):
    """InferenceClient backed by one LangChain chat model."""

    def __init__(self, llm_provider: UnifiedLLMProvider, system_message: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.llm_provider = llm_provider
        self.system_message = system_message
        self.name = f"{llm_provider.provider.value}:{llm_provider.model}"

    def complete(self, prompt: str, options: InferenceOptions) -> str:
        try:
            response = self.llm_provider.invoke(
                prompt,
                system_message=self.system_message,
                temperature=options.temperature,
                max_tokens=options.max_output_tokens,
            )
        except Exception as e:
            raise InferenceError(f"{self.name} request failed: {e}", provider=self.name, cause=e) from e

        text = normalize_response_text(response)
        log_message(f"[{self.name}] response length: {len(text)}", "debug")
        return text


class FallbackInferenceClient(InferenceClient):
    """Tries the primary backend and retries once on the fallback when it fails."""

    def __init__(self, primary: InferenceClient, fallback: InferenceClient):
        super().__init__(primary.generate_options, primary.judge_options)
        self.primary = primary
        self.fallback = fallback
        self.name = f"{primary.name}->{fallback.name}"

    def complete(self, prompt: str, options: InferenceOptions) -> str:
        try:
            return self.primary.complete(prompt, options)
        except Exception as e:
            log_message(f"Primary backend {self.primary.name} failed ({e}); retrying on {self.fallback.name}", "warning")
            return self.fallback.complete(prompt, options)


def _langchain_client(config: PipelineConfig, provider: str, model: Optional[str], temperature: float) -> LangChainInferenceClient:
    llm = UnifiedLLMProvider(
        provider=provider,
        model=model,
        temperature=temperature,
        max_tokens=config.max_tokens,
    )
    return LangChainInferenceClient(
        llm,
        generate_options=InferenceOptions(config.temperature, config.max_tokens),
        judge_options=InferenceOptions(config.judge_temperature, config.max_tokens),
    )


def build_inference_client(config: PipelineConfig, role: str = "generation") -> InferenceClient:
    """Select the backend for a role ("generation" or "validation") from configuration."""
    if role == "validation":
        client = _langchain_client(config, config.validator_provider, config.validator_model, config.judge_temperature)
    elif role == "generation":
        client = _langchain_client(config, config.llm_provider, config.llm_model, config.temperature)
    else:
        raise ValueError(f"Unknown inference role: {role}")

    if config.fallback_provider:
        fallback = _langchain_client(
            config,
            config.fallback_provider,
            config.fallback_model,
            config.judge_temperature if role == "validation" else config.temperature,
        )
        return FallbackInferenceClient(client, fallback)
    return client
