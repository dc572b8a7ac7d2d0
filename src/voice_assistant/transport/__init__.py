"""Transport adapters for speech, language models and user data sources."""

from .contacts_file import JsonContactsProvider
from .gemini_client import GeminiSearchClient
from .integrations_client import (
    CalendarIntegration,
    GmailIntegration,
    IntegrationsApiClient,
)
from .openai_client import OpenAIClient
from .places_client import GooglePlacesClient, haversine_meters

__all__ = [
    "CalendarIntegration",
    "GeminiSearchClient",
    "GmailIntegration",
    "GooglePlacesClient",
    "IntegrationsApiClient",
    "JsonContactsProvider",
    "OpenAIClient",
    "haversine_meters",
]
