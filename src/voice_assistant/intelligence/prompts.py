"""Prompt templates for the Polish-speaking assistant."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from textwrap import dedent

from voice_assistant.core.datetime_utils import RelativeDates, gmail_date

APOLOGY_REPLY = "Przepraszam, nie udało mi się wygenerować odpowiedzi na to pytanie."

SMS_HANDOFF_REPLY = (
    "Otwieram dla Ciebie aplikację SMS. Wybierz odbiorcę (jeśli trzeba), "
    "uzupełnij treść i wyślij wiadomość samodzielnie."
)

ASSISTANT_LABEL = "ZUZA"

_PERSONA = (
    "Jesteś ZUZA, pomocnym, ciepłym asystentem głosowym AI mówiącym po polsku. "
    "Odpowiadaj bardzo krótko, konkretnie i na temat – maksymalnie 1–2 zdania. "
    "Nie używaj odnośników, URL-i ani formatowania markdown, nie dodawaj "
    "wyjaśnień ani długich opisów."
)

CLASSIFIER_SYSTEM_PROMPT = dedent(
    """
    Jesteś ekspertem w klasyfikacji intencji użytkowników. Analizujesz zapytania
    głosowe i określasz, jakiego typu odpowiedzi potrzebują.

    Odpowiadaj TYLKO czystym JSON bez markdown, w formacie:
    {
      "needsEmailIntent": boolean,
      "needsCalendarIntent": boolean,
      "needsSmsIntent": boolean,
      "needsContacts": boolean,
      "isSimpleGreeting": boolean,
      "needsWebSearch": boolean,
      "needsPlacesSearch": boolean,
      "confidence": "high" | "medium" | "low"
    }

    Zasady klasyfikacji:
    - needsPlacesSearch: zapytania o miejsca w okolicy (restauracje, sklepy,
      stacje, apteki, bary, kawiarnie, atrakcje), odległości ("ile metrów",
      "jak daleko"), lokalizacje ("gdzie jest", "najbliższy")
    - needsWebSearch: zapytania o aktualne informacje z internetu (pogoda,
      wiadomości, wyniki sportowe, kursy walut, ceny, wydarzenia); false, gdy
      needsPlacesSearch jest true
    - needsEmailIntent: zapytania o pocztę: wysłanie emaila ("wyślij mail",
      "napisz do", "email do") lub sprawdzenie skrzynki ("jakie maile przyszły")
    - needsCalendarIntent: zapytania o kalendarz: dodanie wydarzenia ("dodaj
      spotkanie", "zapisz termin", "przypomnij") lub plan dnia ("co mam jutro")
    - needsSmsIntent: zapytania o wysłanie SMS ("wyślij sms", "esemes do")
    - needsContacts: zapytania o numer telefonu, adres lub dane kontaktu oraz
      każdy SMS do osoby wskazanej z imienia
    - isSimpleGreeting: proste powitania bez dodatkowych pytań ("cześć", "hej",
      "dzień dobry")
    - confidence: "high" jeśli jesteś pewny, "medium" jeśli prawdopodobny,
      "low" jeśli niepewny
    """
).strip()

INTENT_SYSTEM_PROMPT = (
    "Jesteś ekspertem w rozpoznawaniu intencji. "
    "Odpowiadaj TYLKO czystym JSON bez markdown."
)


def build_classification_prompt(transcript: str) -> str:
    """Ask the classifier to label one utterance."""
    return (
        "Sklasyfikuj następujące zapytanie użytkownika:\n\n"
        f'"{transcript}"\n\n'
        "Zwróć JSON z klasyfikacją intencji."
    )


def build_mail_query_system_prompt(dates: RelativeDates) -> str:
    """Describe the mailbox query language and the current date anchors."""
    weekdays = "\n".join(
        f'    - "{name}" = {gmail_date(day)}' for name, day in dates.weekdays.items()
    )
    prompt = f"""
    Zamieniasz polecenia głosowe dotyczące poczty na zapytanie wyszukiwania
    skrzynki Gmail. Odpowiadaj TYLKO czystym JSON bez markdown, w formacie:
    {{
      "query": "zapytanie Gmail lub null",
      "hasSender": boolean,
      "senderHint": "nadawca wymieniony przez użytkownika lub null"
    }}

    Zasady:
    - Używaj operatorów after:, before:, is:unread, subject:, has:attachment,
      in:inbox. Daty zapisuj jako RRRR/MM/DD.
    - NIGDY nie używaj operatora from:. Jeśli użytkownik wymienia nadawcę,
      ustaw hasSender = true i wpisz jego imię, nazwisko lub firmę do senderHint.
    - Gdy brak kryteriów, zwróć "in:inbox".

    Daty odniesienia:
    - "dzisiaj" = {gmail_date(dates.today)}
    - "wczoraj" = {gmail_date(dates.yesterday)}
    - "w zeszłym tygodniu" = od {gmail_date(dates.last_week)}
    - "w zeszłym miesiącu" = od {gmail_date(dates.last_month)}
    Ostatnie dni tygodnia:
{weekdays}
    """
    return dedent(prompt).strip()


def build_mail_query_prompt(transcript: str) -> str:
    """Wrap the utterance for query generation."""
    return f'Użytkownik powiedział: "{transcript}"\n\nZwróć JSON z zapytaniem.'


SENDER_FILTER_SYSTEM_PROMPT = dedent(
    """
    Dopasowujesz nadawców wiadomości email do osoby, o którą pyta użytkownik.
    Uwzględniaj odmianę imion (np. "od Jana" = "Jan Kowalski") oraz nazwy firm.
    Odpowiadaj TYLKO czystym JSON bez markdown, w formacie:
    {
      "matchingIndices": [numery pasujących nadawców, licząc od 1]
    }
    Jeśli żaden nadawca nie pasuje, zwróć pustą listę.
    """
).strip()


def build_sender_filter_prompt(
    transcript: str, sender_hint: str | None, senders: Sequence[str]
) -> str:
    """List unique senders with 1-based indices for the matcher."""
    listing = "\n".join(f"{index}. {sender}" for index, sender in enumerate(senders, 1))
    hint = sender_hint or "(brak)"
    return (
        f'Użytkownik powiedział: "{transcript}"\n'
        f"Szukany nadawca: {hint}\n\n"
        f"Nadawcy:\n{listing}\n\n"
        "Zwróć JSON z numerami pasujących nadawców."
    )


def build_email_intent_prompt(transcript: str) -> str:
    """Ask whether the user wants to send or only read mail."""
    prompt = f"""
    Użytkownik powiedział: "{transcript}"

    Czy użytkownik chce wysłać email? Jeśli tak, wyodrębnij:
    - Adres email odbiorcy (to) - jeśli podany wprost, np. "jan@example.com"
    - Imię/nazwisko odbiorcy (to) - jeśli podane, np. "do Oliwiera", "do Jana"
    - Temat (subject) - jeśli podany
    - Treść (body) - jeśli podana

    WAŻNE: Jeśli użytkownik mówi "wyślij mail do [imię]" to ZAWSZE
    shouldSendEmail = true! Jeśli użytkownik chce tylko sprawdzić lub
    przeczytać pocztę, ustaw shouldSendEmail = false.

    Odpowiedz w formacie JSON:
    {{
      "shouldSendEmail": true,
      "to": "adres email lub imię odbiorcy lub null",
      "subject": "temat lub null",
      "body": "treść lub null"
    }}
    """
    return dedent(prompt).strip()


def build_calendar_intent_prompt(transcript: str, now: datetime) -> str:
    """Ask for an event, anchoring "dzisiaj" and "jutro" to ``now``."""
    today = now.date().isoformat()
    tomorrow = (now + timedelta(days=1)).date().isoformat()
    prompt = f"""
    Użytkownik powiedział: "{transcript}"

    Czy użytkownik chce dodać wydarzenie do kalendarza? Jeśli tak, wyodrębnij:
    - Tytuł wydarzenia (summary) - np. "dentysta", "spotkanie z Janem"
    - Opis (description) - jeśli podany
    - Miejsce (location) - jeśli podane
    - Data i godzina rozpoczęcia (startDateTime) - ISO 8601, np. "{today}T17:00:00"
    - Data i godzina zakończenia (endDateTime) - ISO 8601 (domyślnie +1h od start)
    - Czy cały dzień (isAllDay) - true jeśli nie ma godziny
    - Uczestnicy (attendees) - lista emaili jeśli podana

    WAŻNE:
    - Jeśli użytkownik mówi "dodaj do kalendarza", "zapisz w kalendarzu",
      "przypomnienie" to ZAWSZE shouldCreateEvent = true!
    - Dla dat użyj: "jutro" = {tomorrow}, "dzisiaj" = {today}
    - Jeśli jest godzina (np. "na 17", "o 17:00"), ustaw isAllDay = false
    - Jeśli nie ma godziny, ustaw isAllDay = true i użyj tylko daty

    Odpowiedz w formacie JSON:
    {{
      "shouldCreateEvent": true,
      "summary": "tytuł lub null",
      "description": "opis lub null",
      "location": "miejsce lub null",
      "startDateTime": "{today}T17:00:00 lub null",
      "endDateTime": "{today}T18:00:00 lub null",
      "isAllDay": false,
      "attendees": ["email1@example.com"] lub null
    }}
    """
    return dedent(prompt).strip()


def build_sms_intent_prompt(transcript: str) -> str:
    """Ask for an SMS recipient and body."""
    prompt = f"""
    Użytkownik powiedział: "{transcript}"

    Czy użytkownik chce wysłać SMS? Jeśli tak, wyodrębnij:
    - Odbiorcę (to) - numer telefonu lub imię, np. "do mamy", "do Kasi"
    - Treść (body) - jeśli podana

    Odpowiedz w formacie JSON:
    {{
      "shouldSendSms": true,
      "to": "numer lub imię odbiorcy lub null",
      "body": "treść lub null"
    }}
    """
    return dedent(prompt).strip()


TITLE_SYSTEM_PROMPT = (
    "Jesteś asystentem, który tworzy krótkie, zwięzłe tytuły dla wiadomości. "
    "Odpowiadaj tylko tytułem, bez dodatkowych słów."
)


def build_title_prompt(first_message: str) -> str:
    """Ask for a short Polish title describing the first message of a chat."""
    return (
        "Stwórz krótki, zwięzły tytuł (maksymalnie 5-6 słów) dla następującej "
        "wiadomości użytkownika. Tytuł powinien być po polsku i opisywać główny "
        "temat wiadomości. Odpowiedz tylko tytułem, bez dodatkowych słów.\n\n"
        f'Wiadomość: "{first_message}"'
    )


def build_system_instruction(
    *,
    user_name: str | None = None,
    context: str | None = None,
    location: str | None = None,
    use_web_search: bool = False,
    mail_connected: bool = False,
    contacts_available: bool = False,
) -> str:
    """Assemble the persona instruction for reply generation."""
    parts = [_PERSONA]
    if user_name:
        parts.append(
            f' Zwracaj się do użytkownika po imieniu "{user_name}" '
            "gdy to możliwe i naturalne."
        )
    if use_web_search:
        parts.append(
            " WAŻNE: Wyszukaj aktualne informacje w internecie i użyj ich do "
            "odpowiedzi. Jeśli znasz lokalizację użytkownika, uwzględnij ją."
        )
    else:
        parts.append(
            " WAŻNE: Gdy otrzymasz aktualne informacje z internetu w kontekście, "
            "użyj ich do odpowiedzi. Jeśli znasz lokalizację użytkownika, "
            "uwzględnij ją w odpowiedzi."
        )
    if mail_connected:
        parts.append(
            " Masz dostęp do skrzynki email użytkownika; odpowiadając o poczcie "
            "opieraj się wyłącznie na wiadomościach z kontekstu."
        )
    if contacts_available:
        parts.append(
            " Masz dostęp do kontaktów użytkownika; podawaj numery i adresy "
            "wyłącznie z kontekstu."
        )
    instruction = "".join(parts)
    if context:
        instruction = f"{instruction}\n\nKontekst:\n{context}"
    if location:
        instruction = (
            f"{instruction}\n\nAktualna (przybliżona) lokalizacja użytkownika: "
            f"{location}."
        )
    return instruction


__all__ = [
    "APOLOGY_REPLY",
    "ASSISTANT_LABEL",
    "CLASSIFIER_SYSTEM_PROMPT",
    "INTENT_SYSTEM_PROMPT",
    "SENDER_FILTER_SYSTEM_PROMPT",
    "SMS_HANDOFF_REPLY",
    "TITLE_SYSTEM_PROMPT",
    "build_calendar_intent_prompt",
    "build_classification_prompt",
    "build_email_intent_prompt",
    "build_mail_query_prompt",
    "build_mail_query_system_prompt",
    "build_sender_filter_prompt",
    "build_sms_intent_prompt",
    "build_system_instruction",
    "build_title_prompt",
]
