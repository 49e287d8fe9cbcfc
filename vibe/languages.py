"""Static language lookup tables.

Display languages are identified by locale code. Each maps to a human-readable
language name, which in turn maps to the engine's internal language code.
"""

from typing import Optional

from .models.preference import LTR, RTL

# Display locale -> language name
SUPPORTED_LANGUAGES = {
    "en-US": "english",
    "he-IL": "hebrew",
    "ar-SA": "arabic",
    "fa-IR": "persian",
    "ur-PK": "urdu",
    "de-DE": "german",
    "fr-FR": "french",
    "es-MX": "spanish",
    "it-IT": "italian",
    "pt-BR": "portuguese",
    "ru-RU": "russian",
    "pl-PL": "polish",
    "nl-NL": "dutch",
    "sv-SE": "swedish",
    "ko-KR": "korean",
    "ja-JP": "japanese",
    "zh-CN": "chinese",
    "zh-HK": "cantonese",
    "vi-VN": "vietnamese",
    "hi-IN": "hindi",
    "ta-IN": "tamil",
    "bn-BD": "bengali",
    "uk-UA": "ukrainian",
    "tr-TR": "turkish",
    "el-GR": "greek",
    "cs-CZ": "czech",
}

# Language name -> engine language code
ENGINE_LANGUAGES = {
    "auto": "auto",
    "english": "en",
    "chinese": "zh",
    "german": "de",
    "spanish": "es",
    "russian": "ru",
    "korean": "ko",
    "french": "fr",
    "japanese": "ja",
    "portuguese": "pt",
    "turkish": "tr",
    "polish": "pl",
    "catalan": "ca",
    "dutch": "nl",
    "arabic": "ar",
    "swedish": "sv",
    "italian": "it",
    "indonesian": "id",
    "hindi": "hi",
    "finnish": "fi",
    "vietnamese": "vi",
    "hebrew": "he",
    "ukrainian": "uk",
    "greek": "el",
    "malay": "ms",
    "czech": "cs",
    "romanian": "ro",
    "danish": "da",
    "hungarian": "hu",
    "tamil": "ta",
    "norwegian": "no",
    "thai": "th",
    "urdu": "ur",
    "croatian": "hr",
    "bulgarian": "bg",
    "lithuanian": "lt",
    "latin": "la",
    "welsh": "cy",
    "slovak": "sk",
    "persian": "fa",
    "latvian": "lv",
    "bengali": "bn",
    "serbian": "sr",
    "slovenian": "sl",
    "estonian": "et",
    "cantonese": "yue",
}

RTL_LANGUAGES = frozenset({"ar", "he", "fa", "ur", "yi", "ps", "sd"})


def language_name(display_language: str) -> Optional[str]:
    return SUPPORTED_LANGUAGES.get(display_language)


def engine_language_code(display_language: str) -> Optional[str]:
    """Map a display locale to the engine language code, or None if unknown."""
    name = language_name(display_language)
    if name is None:
        return None
    return ENGINE_LANGUAGES.get(name)


def text_direction(display_language: str) -> str:
    """Writing direction of a display locale ("ltr" or "rtl")."""
    primary = display_language.split("-")[0].split("_")[0].lower()
    return RTL if primary in RTL_LANGUAGES else LTR
