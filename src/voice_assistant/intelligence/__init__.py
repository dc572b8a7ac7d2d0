"""Model-backed classification, query, reply and intent services."""

from .classifier import IntentClassifier, classify_local
from .intents import IntentExtractor
from .mail_query import MailQueryService
from .prompts import APOLOGY_REPLY, SMS_HANDOFF_REPLY
from .response import ResponseGenerator, ResponseRequest, postprocess_reply
from .structured import decode_or_default, extract_or_default
from .titles import DEFAULT_CHAT_TITLE, ChatTitleGenerator

__all__ = [
    "APOLOGY_REPLY",
    "ChatTitleGenerator",
    "DEFAULT_CHAT_TITLE",
    "IntentClassifier",
    "IntentExtractor",
    "MailQueryService",
    "ResponseGenerator",
    "ResponseRequest",
    "SMS_HANDOFF_REPLY",
    "classify_local",
    "decode_or_default",
    "extract_or_default",
    "postprocess_reply",
]
