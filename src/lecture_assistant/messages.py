"""User-facing strings, keyed by locale.

Only these strings ever reach a caller; internal error detail stays in the logs.
"""

DEFAULT_LOCALE = "en"

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "method_not_allowed": "Method not allowed.",
        "not_found": "Not found.",
        "configuration_error": "Server configuration error.",
        "invalid_body": "Request body must be valid JSON.",
        "invalid_history": "Invalid conversation data.",
        "no_question": "No question was found in the conversation.",
        "generation_failed": "Something went wrong on the server. Please try again.",
        "fallback_answer": (
            "Sorry, I couldn't find a suitable answer. Could you rephrase your question?"
        ),
        "no_context": "No specific content.",
        "cache_unavailable": "Cache statistics are unavailable.",
    },
    "ar": {
        "method_not_allowed": "الطريقة غير مسموح بها.",
        "not_found": "غير موجود.",
        "configuration_error": "خطأ في إعدادات الخادم.",
        "invalid_body": "يجب أن يكون محتوى الطلب بصيغة JSON صحيحة.",
        "invalid_history": "بيانات المحادثة غير صحيحة.",
        "no_question": "لم يتم العثور على سؤال.",
        "generation_failed": "حدث خطأ ما في الخادم.",
        "fallback_answer": (
            "عفواً، لم أتمكن من إيجاد إجابة مناسبة. هل يمكنك إعادة صياغة سؤالك؟"
        ),
        "no_context": "لا يوجد محتوى محدد.",
        "cache_unavailable": "إحصائيات التخزين المؤقت غير متاحة.",
    },
}


def get_message(key: str, locale: str = DEFAULT_LOCALE) -> str:
    """Look up a message, falling back to the default locale."""
    table = MESSAGES.get(locale, MESSAGES[DEFAULT_LOCALE])
    return table.get(key) or MESSAGES[DEFAULT_LOCALE][key]
