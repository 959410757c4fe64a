"""Document analysis for images and PDFs sent over WhatsApp.

Pipeline: media fetch -> document-type inference -> AI extraction -> AI risk
analysis -> persistence -> localized reply. Each step returns a Result and
AnalysisOrchestrator.analyze() always returns reply text.
"""

import base64
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from sqlalchemy.orm import Session

from gateway.logging_config import LoggerAdapter, get_logger
from gateway.models import DocumentAnalysis, WhatsAppSession
from gateway.services.channel.base import ChannelProvider, MediaPayload
from gateway.services.language_service import Locale, coerce_locale
from gateway.services.llm.base import DocumentAIProvider
from gateway.services.media_service import is_analyzable, normalize_content_type
from gateway.services.reply_catalog import MessageKey, get_reply
from gateway.services.result import Result

logger = get_logger("analysis_service")

DEFAULT_DOCUMENT_TYPE = "contract"
DEFAULT_RISK_SCORE = 50
FALLBACK_SUMMARY_CHARS = 500
MAX_REPORT_ITEMS = 3

# Checked in order; the first matching category wins.
DOCUMENT_TYPE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("passport", ("passport", "جواز", "پاسپورٹ")),
    ("visa", ("visa", "تأشيرة", "تاشيرة", "ویزا")),
    ("emirates_id", ("emirates id", "identity", "id card", "هوية", "بطاقة", "شناختی")),
    ("trade_license", ("license", "licence", "رخصة", "لائسنس")),
    ("contract", ("contract", "agreement", "lease", "tenancy", "عقد", "اتفاقية", "معاہدہ")),
)

SCORE_KEYS = ("riskScore", "risk_score", "overallRiskScore", "overall_risk_score", "score")
SUMMARY_KEYS = ("summary", "overallAssessment", "overall_assessment")
FINDING_KEYS = ("keyFindings", "key_findings", "findings", "risks")
RECOMMENDATION_KEYS = ("recommendations", "suggestions")
ITEM_TEXT_KEYS = ("description", "finding", "title", "text", "issue", "recommendation")

_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


@dataclass(frozen=True)
class Structured:
    fields: dict


@dataclass(frozen=True)
class Unstructured:
    raw_text: str


AIPayload = Union[Structured, Unstructured]


def _loads_object(candidate: str) -> Optional[dict]:
    try:
        value = json.loads(candidate)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def parse_ai_payload(text: Optional[str]) -> AIPayload:
    """Parse model output as a JSON object: fenced block first, then the outermost {...}."""
    raw = text or ""
    for pattern in (_CODE_BLOCK, _JSON_OBJECT):
        match = pattern.search(raw)
        if not match:
            continue
        candidate = match.group(1) if pattern is _CODE_BLOCK else match.group(0)
        fields = _loads_object(candidate.strip())
        if fields is not None:
            return Structured(fields)
    return Unstructured(raw.strip())


def payload_as_text(payload: AIPayload) -> str:
    if isinstance(payload, Structured):
        return json.dumps(payload.fields, ensure_ascii=False, indent=2)
    return payload.raw_text


def infer_document_type(caption: Optional[str]) -> str:
    text = (caption or "").strip().lower()
    if not text:
        return DEFAULT_DOCUMENT_TYPE
    for document_type, keywords in DOCUMENT_TYPE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return document_type
    return DEFAULT_DOCUMENT_TYPE


@dataclass
class RiskAssessment:
    score: int
    summary: str
    findings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    structured: bool = True


def _first_present(fields: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if fields.get(key) not in (None, "", []):
            return fields[key]
    return None


def _coerce_score(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        return DEFAULT_RISK_SCORE
    try:
        score = float(str(value).strip().rstrip("%"))
    except ValueError:
        return DEFAULT_RISK_SCORE
    return max(0, min(100, int(round(score))))


def _item_text(item: Any) -> str:
    if isinstance(item, dict):
        for key in ITEM_TEXT_KEYS:
            if item.get(key):
                return str(item[key]).strip()
        return " - ".join(str(value) for value in item.values() if value).strip()
    if item is None:
        return ""
    return str(item).strip()


def _text_items(value: Any) -> list[str]:
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    return [text for text in (_item_text(item) for item in items) if text]


def risk_from_payload(payload: AIPayload) -> RiskAssessment:
    if isinstance(payload, Unstructured):
        return RiskAssessment(
            score=DEFAULT_RISK_SCORE,
            summary=payload.raw_text[:FALLBACK_SUMMARY_CHARS],
            structured=False,
        )

    fields = payload.fields
    summary = _first_present(fields, SUMMARY_KEYS)
    return RiskAssessment(
        score=_coerce_score(_first_present(fields, SCORE_KEYS)),
        summary=str(summary).strip() if summary is not None else "",
        findings=_text_items(_first_present(fields, FINDING_KEYS)),
        recommendations=_text_items(_first_present(fields, RECOMMENDATION_KEYS)),
    )


def risk_band(score: int) -> MessageKey:
    if score <= 30:
        return MessageKey.BAND_LOW
    if score <= 60:
        return MessageKey.BAND_MEDIUM
    return MessageKey.BAND_HIGH


BAND_ICONS = {
    MessageKey.BAND_LOW: "🟢",
    MessageKey.BAND_MEDIUM: "🟡",
    MessageKey.BAND_HIGH: "🔴",
}


def format_analysis_reply(assessment: RiskAssessment, locale: Locale) -> str:
    band = risk_band(assessment.score)
    lines = [
        get_reply(MessageKey.REPORT_TITLE, locale),
        "",
        get_reply(
            MessageKey.REPORT_RISK,
            locale,
            icon=BAND_ICONS[band],
            band=get_reply(band, locale),
            score=assessment.score,
        ),
    ]

    if assessment.summary.strip():
        lines += ["", get_reply(MessageKey.REPORT_SUMMARY, locale), assessment.summary.strip()]

    findings = [item for item in assessment.findings if item.strip()][:MAX_REPORT_ITEMS]
    if findings:
        lines += ["", get_reply(MessageKey.REPORT_FINDINGS, locale)]
        lines += [f"• {item}" for item in findings]

    recommendations = [item for item in assessment.recommendations if item.strip()][:MAX_REPORT_ITEMS]
    if recommendations:
        lines += ["", get_reply(MessageKey.REPORT_RECOMMENDATIONS, locale)]
        lines += [f"• {item}" for item in recommendations]

    lines += ["", get_reply(MessageKey.REPORT_FOOTER, locale)]
    return "\n".join(lines)


class AnalysisOrchestrator:
    """Runs the document analysis pipeline for one inbound attachment."""

    def __init__(
        self,
        db: Session,
        ai_provider: Optional[DocumentAIProvider],
        channel: Optional[ChannelProvider],
        jurisdiction: str = "ae",
    ):
        self.db = db
        self.ai_provider = ai_provider
        self.channel = channel
        self.jurisdiction = jurisdiction

    async def analyze(
        self,
        session: WhatsAppSession,
        media_url: str,
        media_type: Optional[str],
        caption: Optional[str] = None,
    ) -> str:
        locale = coerce_locale(session.detected_language)
        log = LoggerAdapter(logger, {"session_id": str(session.id)})

        if self.ai_provider is None or self.channel is None:
            log.info("Document analysis not configured")
            return get_reply(MessageKey.ANALYSIS_UNAVAILABLE, locale)

        try:
            media = await self._fetch_media(media_url, media_type)
            if not media.ok:
                log.warning(f"Media fetch failed: {media.error}", context={"media_url": media_url})
                return get_reply(MessageKey.MEDIA_FETCH_FAILED, locale)

            document_type = infer_document_type(caption)
            extracted = await self._extract(media.value, document_type)
            if not extracted.ok:
                log.warning(f"Extraction failed: {extracted.error}", context={"document_type": document_type})
                return get_reply(MessageKey.ANALYSIS_FAILED, locale)

            assessment = await self._assess(extracted.value, document_type, locale)
            if not assessment.ok:
                log.warning(f"Risk analysis failed: {assessment.error}", context={"document_type": document_type})
                return get_reply(MessageKey.ANALYSIS_FAILED, locale)

            saved = self._persist(session, document_type, extracted.value, assessment.value)
            if not saved.ok:
                log.error(f"Analysis not saved: {saved.error}")

            log.info(
                "Document analyzed",
                context={
                    "document_type": document_type,
                    "risk_score": assessment.value.score,
                    "structured": assessment.value.structured,
                },
            )
            return format_analysis_reply(assessment.value, locale)
        except Exception:
            log.exception("Unexpected error in document analysis")
            return get_reply(MessageKey.ANALYSIS_FAILED, locale)

    async def _fetch_media(self, media_url: str, declared_type: Optional[str]) -> Result[MediaPayload]:
        try:
            media = await self.channel.fetch_media(media_url)
        except Exception as e:
            return Result.from_exception(e, "media_fetch_failed")

        if not media.data:
            return Result.failure("Empty media payload", "media_fetch_failed")

        content_type = normalize_content_type(media.content_type)
        if not is_analyzable(content_type):
            content_type = normalize_content_type(declared_type)
        return Result.success(MediaPayload(data=media.data, content_type=content_type))

    async def _extract(self, media: MediaPayload, document_type: str) -> Result[AIPayload]:
        try:
            response = await self.ai_provider.extract_document(
                data_base64=base64.b64encode(media.data).decode("ascii"),
                content_type=media.content_type,
                document_type=document_type,
            )
        except Exception as e:
            return Result.from_exception(e, "extraction_failed")
        return Result.success(parse_ai_payload(response.content))

    async def _assess(self, extracted: AIPayload, document_type: str, locale: Locale) -> Result[RiskAssessment]:
        try:
            response = await self.ai_provider.analyze_risk(
                document_text=payload_as_text(extracted),
                document_type=document_type,
                language=locale.value,
                jurisdiction=self.jurisdiction,
            )
        except Exception as e:
            return Result.from_exception(e, "analysis_failed")
        return Result.success(risk_from_payload(parse_ai_payload(response.content)))

    def _persist(
        self,
        session: WhatsAppSession,
        document_type: str,
        extracted: AIPayload,
        assessment: RiskAssessment,
    ) -> Result[DocumentAnalysis]:
        if isinstance(extracted, Structured):
            extracted_data: Any = extracted.fields
        else:
            extracted_data = extracted.raw_text[:FALLBACK_SUMMARY_CHARS]

        try:
            record = DocumentAnalysis(
                session_id=session.id,
                document_type=document_type,
                risk_score=assessment.score,
                summary=assessment.summary,
                findings={
                    "keyFindings": assessment.findings,
                    "recommendations": assessment.recommendations,
                    "structured": assessment.structured,
                    "extracted": extracted_data,
                },
                created_at=datetime.now(timezone.utc),
            )
            self.db.add(record)
            self.db.commit()
            return Result.success(record)
        except Exception as e:
            self.db.rollback()
            return Result.from_exception(e, "persist_failed")
