"""Localized bot replies keyed by (MessageKey, Locale).

Every key must carry an English body; other locales fall back to it.
"""

from enum import Enum
from typing import Optional

from gateway.services.language_service import DEFAULT_LOCALE, Locale


class MessageKey(str, Enum):
    GREETING = "greeting"
    HELP = "help"
    STATUS = "status"
    DOCUMENTS = "documents"
    SUPPORT = "support"
    MENU = "menu"
    PROCESSING_ERROR = "processing_error"
    ANALYSIS_UNAVAILABLE = "analysis_unavailable"
    MEDIA_FETCH_FAILED = "media_fetch_failed"
    ANALYSIS_FAILED = "analysis_failed"
    ALREADY_RECEIVED = "already_received"
    REPORT_TITLE = "report_title"
    REPORT_RISK = "report_risk"
    REPORT_SUMMARY = "report_summary"
    REPORT_FINDINGS = "report_findings"
    REPORT_RECOMMENDATIONS = "report_recommendations"
    REPORT_FOOTER = "report_footer"
    BAND_LOW = "band_low"
    BAND_MEDIUM = "band_medium"
    BAND_HIGH = "band_high"


CATALOG: dict[MessageKey, dict[Locale, str]] = {
    MessageKey.GREETING: {
        Locale.EN: (
            "Hello{name}! 👋\n\n"
            "Welcome to LegalDocs. How can I help you today?\n\n"
            "Reply with:\n"
            "1️⃣ *help* - See available commands\n"
            "2️⃣ *status* - Check your document status\n"
            "3️⃣ Send a photo or PDF of a document for a quick risk review"
        ),
        Locale.AR: (
            "مرحباً{name}! 👋\n\n"
            "أهلاً بك في LegalDocs. كيف يمكنني مساعدتك اليوم؟\n\n"
            "أرسل:\n"
            "1️⃣ *مساعدة* - عرض الأوامر المتاحة\n"
            "2️⃣ *حالة* - تحقق من حالة مستنداتك\n"
            "3️⃣ أرسل صورة أو ملف PDF لمستند لمراجعة المخاطر"
        ),
        Locale.UR: (
            "السلام علیکم{name}! 👋\n\n"
            "LegalDocs میں خوش آمدید۔ آج میں آپ کی کیسے مدد کر سکتا ہوں؟\n\n"
            "جواب دیں:\n"
            "1️⃣ *مدد* - دستیاب کمانڈز دیکھیں\n"
            "2️⃣ *حیثیت* - اپنی دستاویزات کی حیثیت چیک کریں\n"
            "3️⃣ خطرے کے جائزے کے لیے دستاویز کی تصویر یا PDF بھیجیں"
        ),
    },
    MessageKey.HELP: {
        Locale.EN: (
            "📚 *LegalDocs Help*\n\n"
            "Available commands:\n"
            "• *help* - Show this help message\n"
            "• *status* - Check pending documents\n"
            "• *documents* - How to get a document reviewed\n"
            "• *support* - Talk to our team\n\n"
            "_LegalDocs - Your Legal Partner_"
        ),
        Locale.AR: (
            "📚 *مساعدة LegalDocs*\n\n"
            "الأوامر المتاحة:\n"
            "• *مساعدة* - عرض هذه الرسالة\n"
            "• *حالة* - التحقق من المستندات المعلقة\n"
            "• *مستندات* - كيفية مراجعة مستند\n"
            "• *دعم* - التواصل مع فريقنا\n\n"
            "_LegalDocs - شريكك القانوني_"
        ),
        Locale.UR: (
            "📚 *LegalDocs مدد*\n\n"
            "دستیاب کمانڈز:\n"
            "• *مدد* - یہ پیغام دکھائیں\n"
            "• *حیثیت* - زیر التواء دستاویزات چیک کریں\n"
            "• *دستاویزات* - دستاویز کا جائزہ کیسے لیں\n"
            "• *سپورٹ* - ہماری ٹیم سے بات کریں\n\n"
            "_LegalDocs - آپ کا قانونی ساتھی_"
        ),
    },
    MessageKey.STATUS: {
        Locale.EN: (
            "📊 *Document Status*\n\n"
            "To check your document status, log in to your LegalDocs dashboard "
            "or reply with your document reference number (e.g., DOC-12345)."
        ),
        Locale.AR: (
            "📊 *حالة المستند*\n\n"
            "للتحقق من حالة مستندك، سجّل الدخول إلى لوحة تحكم LegalDocs "
            "أو أرسل رقم مرجع المستند (مثال: DOC-12345)."
        ),
        Locale.UR: (
            "📊 *دستاویز کی حیثیت*\n\n"
            "اپنی دستاویز کی حیثیت چیک کرنے کے لیے LegalDocs ڈیش بورڈ میں لاگ ان کریں "
            "یا اپنا حوالہ نمبر بھیجیں (مثال: DOC-12345)۔"
        ),
    },
    MessageKey.DOCUMENTS: {
        Locale.EN: (
            "📄 *Document Review*\n\n"
            "Send a clear photo or PDF of your contract, license, ID, passport or visa. "
            "Add a caption such as \"tenancy contract\" to help me identify it."
        ),
        Locale.AR: (
            "📄 *مراجعة المستندات*\n\n"
            "أرسل صورة واضحة أو ملف PDF لعقدك أو رخصتك أو هويتك أو جواز سفرك أو تأشيرتك. "
            "أضف وصفاً مثل \"عقد إيجار\" لمساعدتي في التعرف عليه."
        ),
        Locale.UR: (
            "📄 *دستاویز کا جائزہ*\n\n"
            "اپنے معاہدے، لائسنس، شناختی کارڈ، پاسپورٹ یا ویزا کی واضح تصویر یا PDF بھیجیں۔"
        ),
    },
    MessageKey.SUPPORT: {
        Locale.EN: "🤝 Our team will get back to you shortly. You can also reach us from the LegalDocs dashboard.",
        Locale.AR: "🤝 سيتواصل معك فريقنا قريباً. يمكنك أيضاً التواصل معنا من لوحة تحكم LegalDocs.",
        Locale.UR: "🤝 ہماری ٹیم جلد آپ سے رابطہ کرے گی۔ آپ LegalDocs ڈیش بورڈ سے بھی رابطہ کر سکتے ہیں۔",
    },
    MessageKey.MENU: {
        Locale.EN: (
            "Thank you for your message!\n\n"
            "I'm the LegalDocs assistant. For help, reply *help*.\n\n"
            "To speak with a human, reply *support*."
        ),
        Locale.AR: (
            "شكراً لرسالتك!\n\n"
            "أنا مساعد LegalDocs. للمساعدة، أرسل *مساعدة*.\n\n"
            "للتحدث مع شخص، أرسل *دعم*."
        ),
        Locale.UR: (
            "آپ کے پیغام کا شکریہ!\n\n"
            "میں LegalDocs اسسٹنٹ ہوں۔ مدد کے لیے *مدد* لکھیں۔\n\n"
            "کسی شخص سے بات کرنے کے لیے *سپورٹ* لکھیں۔"
        ),
    },
    MessageKey.PROCESSING_ERROR: {
        Locale.EN: "Sorry, we couldn't process your message. Please try again later.",
        Locale.AR: "عذراً، لم نتمكن من معالجة رسالتك. يرجى المحاولة لاحقاً.",
        Locale.UR: "معذرت، ہم آپ کا پیغام پروسیس نہیں کر سکے۔ براہ کرم بعد میں دوبارہ کوشش کریں۔",
    },
    MessageKey.ANALYSIS_UNAVAILABLE: {
        Locale.EN: "📄 Document analysis is not available right now. Please use the LegalDocs dashboard.",
        Locale.AR: "📄 تحليل المستندات غير متاح حالياً. يرجى استخدام لوحة تحكم LegalDocs.",
        Locale.UR: "📄 دستاویز کا تجزیہ اس وقت دستیاب نہیں ہے۔ براہ کرم LegalDocs ڈیش بورڈ استعمال کریں۔",
    },
    MessageKey.MEDIA_FETCH_FAILED: {
        Locale.EN: "❌ We couldn't retrieve your document. Please send it again.",
        Locale.AR: "❌ لم نتمكن من استلام مستندك. يرجى إرساله مرة أخرى.",
        Locale.UR: "❌ ہم آپ کی دستاویز حاصل نہیں کر سکے۔ براہ کرم دوبارہ بھیجیں۔",
    },
    MessageKey.ANALYSIS_FAILED: {
        Locale.EN: "❌ Document analysis failed. Please try again with a clearer image.",
        Locale.AR: "❌ فشل تحليل المستند. يرجى المحاولة مرة أخرى بصورة أوضح.",
        Locale.UR: "❌ دستاویز کا تجزیہ ناکام ہو گیا۔ براہ کرم واضح تصویر کے ساتھ دوبارہ کوشش کریں۔",
    },
    MessageKey.ALREADY_RECEIVED: {
        Locale.EN: "⏳ We already received this document. Your analysis is on its way.",
        Locale.AR: "⏳ لقد استلمنا هذا المستند بالفعل. التحليل في الطريق.",
        Locale.UR: "⏳ ہمیں یہ دستاویز پہلے ہی موصول ہو چکی ہے۔",
    },
    MessageKey.REPORT_TITLE: {
        Locale.EN: "📋 *Document Analysis*",
        Locale.AR: "📋 *تحليل المستند*",
        Locale.UR: "📋 *دستاویز کا تجزیہ*",
    },
    MessageKey.REPORT_RISK: {
        Locale.EN: "{icon} Risk level: *{band}* ({score}/100)",
        Locale.AR: "{icon} مستوى المخاطر: *{band}* ({score}/100)",
        Locale.UR: "{icon} خطرے کی سطح: *{band}* ({score}/100)",
    },
    MessageKey.REPORT_SUMMARY: {
        Locale.EN: "*Summary:*",
        Locale.AR: "*الملخص:*",
        Locale.UR: "*خلاصہ:*",
    },
    MessageKey.REPORT_FINDINGS: {
        Locale.EN: "*Key findings:*",
        Locale.AR: "*أهم النتائج:*",
        Locale.UR: "*اہم نکات:*",
    },
    MessageKey.REPORT_RECOMMENDATIONS: {
        Locale.EN: "*Recommendations:*",
        Locale.AR: "*التوصيات:*",
        Locale.UR: "*سفارشات:*",
    },
    MessageKey.REPORT_FOOTER: {
        Locale.EN: "_This is an automated review, not legal advice._",
        Locale.AR: "_هذه مراجعة آلية وليست استشارة قانونية._",
        Locale.UR: "_یہ خودکار جائزہ ہے، قانونی مشورہ نہیں۔_",
    },
    MessageKey.BAND_LOW: {
        Locale.EN: "LOW",
        Locale.AR: "منخفض",
        Locale.UR: "کم",
    },
    MessageKey.BAND_MEDIUM: {
        Locale.EN: "MEDIUM",
        Locale.AR: "متوسط",
        Locale.UR: "درمیانہ",
    },
    MessageKey.BAND_HIGH: {
        Locale.EN: "HIGH",
        Locale.AR: "مرتفع",
        Locale.UR: "زیادہ",
    },
}


def _check_catalog() -> None:
    missing = [key.value for key in MessageKey if DEFAULT_LOCALE not in CATALOG.get(key, {})]
    if missing:
        raise RuntimeError(f"Reply catalog is missing {DEFAULT_LOCALE.value} bodies for: {', '.join(missing)}")


_check_catalog()


def get_reply(key: MessageKey, locale: Optional[Locale] = None, **values) -> str:
    """Return the reply for key in locale, falling back to English."""
    bodies = CATALOG[key]
    body = bodies.get(locale or DEFAULT_LOCALE) or bodies[DEFAULT_LOCALE]
    return body.format(**values) if values else body
