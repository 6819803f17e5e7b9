from .llm_providers import UnifiedLLMProvider, LLMProvider
from .inference import (
    InferenceClient,
    InferenceOptions,
    LangChainInferenceClient,
    FallbackInferenceClient,
    build_inference_client,
    normalize_response_text,
)
from .parsers import JSONArrayParser, normalize_pair
from .theme_chain import ThemeExtractor
from .qa_chains import PairGenerator
from .qa_validator import QAValidator
from .distractor_chain import DistractorSynthesizer

__all__ = [
    'UnifiedLLMProvider',
    'LLMProvider',
    'InferenceClient',
    'InferenceOptions',
    'LangChainInferenceClient',
    'FallbackInferenceClient',
    'build_inference_client',
    'normalize_response_text',
    'JSONArrayParser',
    'normalize_pair',
    'ThemeExtractor',
    'PairGenerator',
    'QAValidator',
    'DistractorSynthesizer',
]
