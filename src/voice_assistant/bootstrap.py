"""Build the voice pipeline and its providers from application settings."""

from __future__ import annotations

import logging

from voice_assistant.context import ContextAggregator
from voice_assistant.core import AppSettings, ServiceContainer
from voice_assistant.core.models import AuthenticatedSession
from voice_assistant.intelligence import (
    ChatTitleGenerator,
    IntentClassifier,
    IntentExtractor,
    MailQueryService,
    ResponseGenerator,
)
from voice_assistant.pipeline import TranscriptionAdapter, VoicePipeline
from voice_assistant.storage import SqliteConversationStore
from voice_assistant.transport import (
    GeminiSearchClient,
    GooglePlacesClient,
    IntegrationsApiClient,
    JsonContactsProvider,
    OpenAIClient,
)

LOGGER = logging.getLogger(__name__)

OPENAI = "openai"
GEMINI = "gemini"
PLACES = "places"
INTEGRATIONS = "integrations"
CONTACTS = "contacts"
STORE = "store"


def session_from_settings(settings: AppSettings) -> AuthenticatedSession | None:
    """Return the configured backend session, if a token is present."""
    token = settings.integrations.session_token
    return AuthenticatedSession(access_token=token) if token else None


def build_container(
    settings: AppSettings,
    *,
    session: AuthenticatedSession | None = None,
    persist_history: bool = True,
) -> ServiceContainer:
    """Register every provider the settings allow.

    Optional providers (search generation, places, contacts) are only
    registered when their credentials or files are configured; the
    pipeline treats a missing provider as an unavailable context source.
    """
    container = ServiceContainer()
    active_session = session or session_from_settings(settings)

    container.register(OPENAI, lambda _c: OpenAIClient(settings.openai))
    container.register(
        INTEGRATIONS,
        lambda _c: IntegrationsApiClient(settings.integrations, active_session),
    )
    if settings.gemini.api_key:
        container.register(
            GEMINI,
            lambda _c: GeminiSearchClient(
                settings.gemini, temperature=settings.generation.temperature
            ),
        )
    else:
        LOGGER.info("Gemini API key missing; web search replies use the chat model")
    if settings.places.api_key:
        container.register(PLACES, lambda _c: GooglePlacesClient(settings.places))
    if settings.contacts.export_path is not None:
        container.register(
            CONTACTS, lambda _c: JsonContactsProvider(settings.contacts.export_path)
        )
    if persist_history:
        container.register(
            STORE,
            lambda c: SqliteConversationStore(
                settings.storage, titler=ChatTitleGenerator(c.resolve(OPENAI))
            ),
        )
    if active_session is None:
        LOGGER.info("No backend session configured; mail and calendar are disabled")
    return container


def build_pipeline(container: ServiceContainer, settings: AppSettings) -> VoicePipeline:
    """Assemble a :class:`VoicePipeline` from registered providers."""
    openai_client: OpenAIClient = container.resolve(OPENAI)
    integrations: IntegrationsApiClient = container.resolve(INTEGRATIONS)
    store = container.try_resolve(STORE)

    mail_query = MailQueryService(
        openai_client, model_name=settings.openai.classification_model
    )
    aggregator = ContextAggregator(
        mail=integrations.mail(),
        calendar=integrations.calendar(),
        places=container.try_resolve(PLACES),
        contacts=container.try_resolve(CONTACTS),
        mail_query=mail_query,
        mail_settings=settings.mail,
        calendar_settings=settings.calendar,
        places_settings=settings.places,
    )
    return VoicePipeline(
        transcriber=TranscriptionAdapter(openai_client),
        classifier=IntentClassifier(
            openai_client, model_name=settings.openai.classification_model
        ),
        aggregator=aggregator,
        responder=ResponseGenerator(
            openai_client,
            container.try_resolve(GEMINI),
            settings=settings.generation,
        ),
        extractor=IntentExtractor(
            openai_client, model_name=settings.openai.extraction_model
        ),
        history=store,
        sink=store,
        settings=settings.assistant,
    )


__all__ = ["build_container", "build_pipeline", "session_from_settings"]
