"""Static lookup tables: slots, languages, prompts and notification titles.

Everything here is read-only process-wide state built at import time.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class Slot(Enum):
    """Daily delivery window."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class Language(Enum):
    """Supported content languages."""

    ES = "es"
    EN = "en"
    PT = "pt"


# Frequency values accepted at registration
FREQUENCY_MORNING_ONLY = 1
FREQUENCY_ALL_SLOTS = 3
FREQUENCIES = (FREQUENCY_MORNING_ONLY, FREQUENCY_ALL_SLOTS)

# Local wall-clock hour at which each slot is delivered
SLOT_HOURS = MappingProxyType(
    {
        Slot.MORNING: 10,
        Slot.AFTERNOON: 14,
        Slot.EVENING: 18,
    }
)


@dataclass(frozen=True)
class VerseKey:
    """Identifies one cached verse artifact: (date, slot, language)."""

    date: str  # YYYY-MM-DD
    slot: Slot
    language: Language

    def __str__(self) -> str:
        return f"{self.date}_{self.slot.value}_{self.language.value}"


@dataclass(frozen=True)
class LanguagePrompts:
    bible_prompt: str
    pastor_prompt: str


PROMPTS = MappingProxyType(
    {
        Language.ES: LanguagePrompts(
            bible_prompt=(
                "Eres una Biblia tecnológica. Devuelve el contenido del versículo solicitado en versión "
                "Reina-Valera 1960. IMPORTANTE: Tu respuesta debe tener estrictamente este formato: "
                "'Libro Capitulo:Versiculo|Texto del versículo'. Ejemplo: 'Juan 3:16|Porque de tal manera "
                "amó Dios al mundo...'. Sin introducciones."
            ),
            pastor_prompt=(
                "Eres un asistente pastoral sabio. Escribe una reflexión de 2 o 3 párrafos en ESPAÑOL. "
                "Profundiza en el significado teológico y su aplicación práctica. Tono solemne y esperanzador."
            ),
        ),
        Language.EN: LanguagePrompts(
            bible_prompt=(
                "You are a technological Bible. I will give you a verse reference in Spanish "
                "(e.g., 'Juan 3:16'). You MUST: 1. Translate the book name to English (e.g. 'Juan' -> 'John'). "
                "2. Return the text of that verse in King James Version (KJV). IMPORTANT: Your response must "
                "strictly follow this format: 'Book Chapter:Verse|Text of the verse'. Example: "
                "'John 3:16|For God so loved the world...'. No introductions."
            ),
            pastor_prompt=(
                "You are a wise pastoral assistant. Write a 2 or 3 paragraph reflection in ENGLISH. "
                "Deepen into the theological meaning and practical application. Solemn and hopeful tone."
            ),
        ),
        Language.PT: LanguagePrompts(
            bible_prompt=(
                "Você é uma Bíblia tecnológica. Eu lhe darei uma referência em Espanhol (ex: 'Juan 3:16'). "
                "Você DEVE: 1. Traduzir o nome do livro para Português (ex: 'Juan' -> 'João'). 2. Retornar o "
                "texto do versículo na versão Almeida Corrigida Fiel. IMPORTANTE: Sua resposta deve seguir "
                "estritamente este formato: 'Livro Capítulo:Versículo|Texto do versículo'. Exemplo: "
                "'João 3:16|Porque Deus amou o mundo de tal maneira...'. Sem introduções."
            ),
            pastor_prompt=(
                "Você é um assistente pastoral sábio. Escreva uma reflexão de 2 ou 3 parágrafos em "
                "PORTUGUÊS. Aprofunde o significado teológico e sua aplicação prática. Tom solene e esperançoso."
            ),
        ),
    }
)

DEFAULT_TITLE = "Palabra Viva"

TITLES = MappingProxyType(
    {
        Language.ES: MappingProxyType(
            {
                Slot.MORNING: "Palabra Viva: Mañana 🌅",
                Slot.AFTERNOON: "Palabra Viva: Tarde ☀️",
                Slot.EVENING: "Palabra Viva: Noche 🌙",
            }
        ),
        Language.EN: MappingProxyType(
            {
                Slot.MORNING: "Living Word: Morning 🌅",
                Slot.AFTERNOON: "Living Word: Afternoon ☀️",
                Slot.EVENING: "Living Word: Evening 🌙",
            }
        ),
        Language.PT: MappingProxyType(
            {
                Slot.MORNING: "Palavra Viva: Manhã 🌅",
                Slot.AFTERNOON: "Palavra Viva: Tarde ☀️",
                Slot.EVENING: "Palavra Viva: Noite 🌙",
            }
        ),
    }
)


def notification_title(language: Language, slot: Slot) -> str:
    return TITLES.get(language, {}).get(slot, DEFAULT_TITLE)


def parse_slot(value: str | None) -> Slot | None:
    """Parse a slot name, returning None for unknown values."""
    try:
        return Slot((value or "").strip().lower())
    except ValueError:
        return None


def parse_language(value: str | None) -> Language | None:
    """Parse a language code, returning None for unknown values."""
    try:
        return Language((value or "").strip().lower())
    except ValueError:
        return None


def all_verse_keys(date: str) -> list[VerseKey]:
    """All slot x language keys for one day, morning first."""
    return [VerseKey(date=date, slot=slot, language=lang) for slot in Slot for lang in Language]
