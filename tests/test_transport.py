"""Tests for the HTTP transport adapters using ``httpx.MockTransport``."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from voice_assistant.core.config import (
    GeminiSettings,
    IntegrationsSettings,
    OpenAISettings,
    PlacesSettings,
)
from voice_assistant.core.errors import LLMError, ProviderError
from voice_assistant.core.models import AuthenticatedSession
from voice_assistant.transport import (
    GeminiSearchClient,
    GooglePlacesClient,
    IntegrationsApiClient,
    OpenAIClient,
    haversine_meters,
)


def _client(handler, base_url: str) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=base_url)


async def test_openai_transcribe_posts_multipart(tmp_path: Path) -> None:
    audio = tmp_path / "clip.m4a"
    audio.write_bytes(b"audio-bytes")
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = request.content
        return httpx.Response(200, text="  Cześć Zuza \n")

    settings = OpenAISettings(api_key="sk-test")
    client = OpenAIClient(settings, client=_client(handler, "https://api.test/v1/"))

    transcript = await client.transcribe(audio, "pl")

    assert transcript == "Cześć Zuza"
    assert seen["url"] == "https://api.test/v1/audio/transcriptions"
    assert seen["auth"] == "Bearer sk-test"
    body = seen["body"]
    assert isinstance(body, bytes)
    assert b"whisper-1" in body
    assert b'name="language"' in body
    assert b"audio-bytes" in body


async def test_openai_extract_json_uses_json_mode() -> None:
    captured: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(json.loads(request.content))
        content = '{"query": "in:inbox", "hasSender": false}'
        return httpx.Response(
            200, json={"choices": [{"message": {"content": content}}]}
        )

    client = OpenAIClient(
        OpenAISettings(api_key="sk"), client=_client(handler, "https://api.test/v1/")
    )

    payload = await client.extract_json("system", "user", '{"title":"X"}', model="m")

    assert payload == {"query": "in:inbox", "hasSender": False}
    body = captured[0]
    assert body["model"] == "m"
    assert body["response_format"] == {"type": "json_object"}
    assert body["temperature"] == 0.1
    messages = body["messages"]
    assert isinstance(messages, list)
    assert messages[0]["content"].endswith('Schemat JSON odpowiedzi: {"title":"X"}')


async def test_openai_errors_become_llm_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": "rate limited"})

    client = OpenAIClient(
        OpenAISettings(api_key="sk"), client=_client(handler, "https://api.test/v1/")
    )

    with pytest.raises(LLMError):
        await client.complete(
            [{"role": "user", "content": "x"}], max_tokens=5, temperature=0
        )


async def test_openai_requires_api_key() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    client = OpenAIClient(OpenAISettings(), client=_client(handler, "https://x/"))

    with pytest.raises(LLMError):
        await client.extract_json("s", "u", "{}")


async def test_gemini_enables_search_tool_and_joins_parts() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(
            200,
            json={
                "candidates": [
                    {
                        "content": {
                            "parts": [{"text": "Słonecznie, "}, {"text": "20°C."}]
                        }
                    }
                ]
            },
        )

    settings = GeminiSettings(api_key="g-key", model="gemini-test")
    client = GeminiSearchClient(
        settings, client=_client(handler, "https://gen.test/v1beta/")
    )

    text = await client.generate("persona", "Pogoda?", 512)

    assert text == "Słonecznie, 20°C."
    request = captured[0]
    assert request.url.path == "/v1beta/models/gemini-test:generateContent"
    assert request.url.params["key"] == "g-key"
    body = json.loads(request.content)
    assert body["tools"] == [{"google_search": {}}]
    assert body["generationConfig"]["maxOutputTokens"] == 512
    assert body["systemInstruction"]["parts"][0]["text"] == "persona"


async def test_gemini_without_candidates_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    client = GeminiSearchClient(
        GeminiSettings(api_key="k"), client=_client(handler, "https://gen.test/")
    )

    with pytest.raises(LLMError):
        await client.generate("s", "u", 10)


async def test_gemini_non_object_candidate_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": ["not-an-object"]})

    client = GeminiSearchClient(
        GeminiSettings(api_key="k"), client=_client(handler, "https://gen.test/")
    )

    with pytest.raises(LLMError):
        await client.generate("s", "u", 10)


async def test_gemini_candidate_without_parts_yields_empty_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        candidate = {"content": "text", "finishReason": "STOP"}
        return httpx.Response(200, json={"candidates": [candidate]})

    client = GeminiSearchClient(
        GeminiSettings(api_key="k"), client=_client(handler, "https://gen.test/")
    )

    assert await client.generate("s", "u", 10) == ""


async def test_places_sorted_by_distance() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["location"] == "52.0,21.0"
        return httpx.Response(
            200,
            json={
                "status": "OK",
                "results": [
                    {
                        "place_id": "far",
                        "name": "Daleka Apteka",
                        "geometry": {"location": {"lat": 52.05, "lng": 21.0}},
                    },
                    {
                        "place_id": "near",
                        "name": "Bliska Apteka",
                        "vicinity": "Rynek 1",
                        "rating": 4.5,
                        "opening_hours": {"open_now": True},
                        "geometry": {"location": {"lat": 52.001, "lng": 21.0}},
                    },
                ],
            },
        )

    client = GooglePlacesClient(
        PlacesSettings(api_key="p"), client=_client(handler, "https://maps.test/")
    )

    places = await client.search(52.0, 21.0, "apteka", 5000, 5)

    assert [place.place_id for place in places] == ["near", "far"]
    assert places[0].address == "Rynek 1"
    assert places[0].open_now is True
    assert places[1].address == "Brak adresu"
    assert places[0].distance_meters == pytest.approx(111.2, abs=0.5)


async def test_places_zero_results_and_errors() -> None:
    statuses = iter(["ZERO_RESULTS", "REQUEST_DENIED"])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": next(statuses), "results": []})

    client = GooglePlacesClient(
        PlacesSettings(api_key="p"), client=_client(handler, "https://maps.test/")
    )

    assert await client.search(0.0, 0.0, "bar", 100, 5) == []
    with pytest.raises(ProviderError):
        await client.search(0.0, 0.0, "bar", 100, 5)


def test_haversine_one_degree_latitude() -> None:
    assert haversine_meters(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_195, rel=1e-3)


async def test_integrations_without_session_report_disconnected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected without a session")

    api = IntegrationsApiClient(
        IntegrationsSettings(), None, client=_client(handler, "https://api.test/")
    )

    assert (await api.mail().status()).connected is False
    assert (await api.calendar().status()).connected is False


async def test_integrations_unwrap_envelope_and_parse_messages() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/gmail/status"):
            data = {"isConnected": True, "email": "ja@example.com"}
        else:
            data = [
                {
                    "id": "m1",
                    "threadId": "t1",
                    "subject": "Faktura",
                    "from": "Biuro <biuro@firma.pl>",
                    "to": ["ja@example.com"],
                    "date": "2025-01-13T08:15:00Z",
                    "snippet": "W załączniku",
                    "isUnread": True,
                }
            ]
        return httpx.Response(200, json={"success": True, "data": data})

    api = IntegrationsApiClient(
        IntegrationsSettings(),
        AuthenticatedSession(access_token="session-1"),
        client=_client(handler, "https://api.test/api/v1/"),
    )
    mail = api.mail()

    status = await mail.status()
    messages = await mail.search("is:unread", 50)

    assert status.connected is True
    assert status.email == "ja@example.com"
    assert seen[0].headers["Authorization"] == "Bearer session-1"
    assert seen[1].url.path == "/api/v1/integrations/gmail/search"
    assert seen[1].url.params["query"] == "is:unread"
    assert seen[1].url.params["maxResults"] == "50"
    assert messages[0].sender == "Biuro <biuro@firma.pl>"
    assert messages[0].is_unread is True
    assert messages[0].date == datetime(2025, 1, 13, 8, 15, tzinfo=timezone.utc)


async def test_integrations_calendar_events_handle_all_day() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["calendarId"] == "primary"
        assert request.url.params["timeMin"] == "2025-01-15T09:00:00Z"
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": [
                    {
                        "id": "e1",
                        "summary": "Urlop",
                        "start": {"date": "2025-01-16"},
                        "end": {"date": "2025-01-17"},
                    },
                    {
                        "id": "e2",
                        "summary": "Dentysta",
                        "start": {"dateTime": "2025-01-16T15:00:00+01:00"},
                        "end": {"dateTime": "2025-01-16T16:00:00+01:00"},
                        "location": "Gabinet",
                    },
                ],
            },
        )

    api = IntegrationsApiClient(
        IntegrationsSettings(),
        AuthenticatedSession(access_token="t"),
        client=_client(handler, "https://api.test/"),
    )
    start = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)

    events = await api.calendar().list_events(start, start.replace(day=22), 20)

    assert events[0].is_all_day is True
    assert events[1].is_all_day is False
    assert events[1].location == "Gabinet"
    assert events[1].start is not None and events[1].start.hour == 15


async def test_integrations_http_errors_become_provider_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"success": False, "message": "expired"})

    api = IntegrationsApiClient(
        IntegrationsSettings(),
        AuthenticatedSession(access_token="old"),
        client=_client(handler, "https://api.test/"),
    )

    with pytest.raises(ProviderError):
        await api.mail().status()
