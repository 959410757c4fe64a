from gateway.services.llm.base import DocumentAIProvider, LLMResponse
from gateway.services.llm.openrouter_provider import OpenRouterProvider

__all__ = ["DocumentAIProvider", "LLMResponse", "OpenRouterProvider"]
