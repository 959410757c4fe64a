from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class LLMResponse:
    content: str
    model: str
    usage: Optional[dict] = None


class DocumentAIProvider(ABC):
    """Abstract base class for the two document AI capabilities."""

    @abstractmethod
    async def extract_document(
        self,
        *,
        data_base64: str,
        content_type: str,
        document_type: str,
    ) -> LLMResponse:
        """Read a document image/PDF and return its contents, ideally as JSON."""
        pass

    @abstractmethod
    async def analyze_risk(
        self,
        *,
        document_text: str,
        document_type: str,
        language: str,
        jurisdiction: str,
    ) -> LLMResponse:
        """Assess legal risk of extracted document contents, ideally as JSON."""
        pass
