from typing import List, Optional

import httpx

from gateway.logging_config import get_logger
from gateway.services.llm.base import DocumentAIProvider, LLMResponse

logger = get_logger("llm.openrouter")

JURISDICTION_NAMES = {
    "ae": "United Arab Emirates",
    "sa": "Saudi Arabia",
    "qa": "Qatar",
    "kw": "Kuwait",
    "bh": "Bahrain",
    "om": "Oman",
}

LANGUAGE_NAMES = {"en": "English", "ar": "Arabic", "ur": "Urdu"}

EXTRACTION_FIELDS = {
    "emirates_id": "fullName, fullNameAr, idNumber, nationality, dateOfBirth, gender, cardNumber, expiryDate",
    "passport": "fullName, passportNumber, nationality, dateOfBirth, gender, placeOfBirth, issueDate, expiryDate, mrz",
    "trade_license": (
        "licenseNumber, companyName, companyNameAr, legalForm, activities (array), issueDate, expiryDate, "
        "issuingAuthority, owners (array), registeredAddress"
    ),
    "visa": (
        "visaType, visaNumber, fullName, passportNumber, nationality, profession, sponsorName, sponsorNumber, "
        "issueDate, expiryDate"
    ),
    "contract": (
        "title, parties (array of {name, role}), effectiveDate, term, paymentTerms, terminationClause, "
        "governingLaw, clauses (array of {heading, text})"
    ),
}


def build_extraction_prompt(document_type: str) -> str:
    fields = EXTRACTION_FIELDS.get(document_type, EXTRACTION_FIELDS["contract"])
    label = document_type.replace("_", " ")
    return (
        f"You extract data from scanned legal documents. The document is a {label}.\n"
        "Read every visible field, keep Arabic text in Arabic script, and use DD/MM/YYYY for dates.\n"
        f"Return valid JSON only, with these fields: {fields}. Use null for fields you cannot read."
    )


def build_risk_prompt(document_type: str, language: str, jurisdiction: str) -> str:
    country = JURISDICTION_NAMES.get(jurisdiction, jurisdiction.upper())
    output_language = LANGUAGE_NAMES.get(language, "English")
    label = document_type.replace("_", " ")
    return (
        f"You are an expert legal analyst specializing in {country} law. "
        f"Review the following {label} for risks to the person who sent it.\n"
        "Rate the overall risk from 0 (no risk) to 100 (severe risk), list the most important findings "
        "and give practical recommendations.\n"
        f"Write summary, findings and recommendations in {output_language}.\n"
        'Return valid JSON only: {"riskScore": <0-100>, "summary": "...", '
        '"keyFindings": ["..."], "recommendations": ["..."]}'
    )


class OpenRouterProvider(DocumentAIProvider):
    """OpenRouter chat-completions provider for document extraction and risk analysis."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://openrouter.ai/api/v1",
        extraction_model: str = "anthropic/claude-sonnet-4",
        analysis_model: str = "anthropic/claude-sonnet-4",
        timeout_seconds: float = 60.0,
        referer: str = "https://www.qannoni.com",
        app_title: str = "LegalDocs WhatsApp",
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.extraction_model = extraction_model
        self.analysis_model = analysis_model
        self.timeout_seconds = timeout_seconds
        self.referer = referer
        self.app_title = app_title

    async def generate(
        self,
        messages: List[dict],
        model: str,
        temperature: float = 0.2,
        max_tokens: int = 4000,
        timeout_seconds: Optional[float] = None,
    ) -> LLMResponse:
        """Send a chat-completions request and return the first choice."""
        timeout = timeout_seconds if timeout_seconds is not None else self.timeout_seconds
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        logger.debug(f"OpenRouter request: model={model}, messages_count={len(messages)}")

        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                    "HTTP-Referer": self.referer,
                    "X-Title": self.app_title,
                },
                json=payload,
            )

        logger.debug(f"OpenRouter response status: {response.status_code}")
        if response.status_code != 200:
            logger.error(f"OpenRouter error: {response.text[:500]}")
            raise Exception(f"OpenRouter API error: {response.status_code} - {response.text[:200]}")

        data = response.json()
        content = ""
        if data.get("choices"):
            message = data["choices"][0].get("message", {})
            content = message.get("content") or ""
        if not content:
            logger.warning("OpenRouter returned empty content")

        return LLMResponse(content=content, model=data.get("model", model), usage=data.get("usage"))

    async def extract_document(
        self,
        *,
        data_base64: str,
        content_type: str,
        document_type: str,
    ) -> LLMResponse:
        data_url = f"data:{content_type};base64,{data_base64}"
        if content_type == "application/pdf":
            attachment = {"type": "file", "file": {"filename": "document.pdf", "file_data": data_url}}
        else:
            attachment = {"type": "image_url", "image_url": {"url": data_url}}

        messages = [
            {"role": "system", "content": build_extraction_prompt(document_type)},
            {
                "role": "user",
                "content": [
                    attachment,
                    {"type": "text", "text": "Extract all information from this document. Return valid JSON only."},
                ],
            },
        ]
        return await self.generate(messages, model=self.extraction_model, max_tokens=4000)

    async def analyze_risk(
        self,
        *,
        document_text: str,
        document_type: str,
        language: str,
        jurisdiction: str,
    ) -> LLMResponse:
        messages = [
            {"role": "system", "content": build_risk_prompt(document_type, language, jurisdiction)},
            {"role": "user", "content": f"Analyze this document and provide a risk assessment:\n\n{document_text}"},
        ]
        return await self.generate(messages, model=self.analysis_model, max_tokens=3000)
