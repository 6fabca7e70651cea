"""Bot reply strings, one JSON file per language under ``locales/``."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Optional

LOCALES_DIR = Path(__file__).parent / "locales"
DEFAULT_LANG = "en"

LANG_NAMES: dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "fa": "Persian",
}


@lru_cache(maxsize=None)
def _strings(lang: str) -> dict[str, str]:
    path = LOCALES_DIR / f"{lang}.json"
    if not path.exists():
        return {}
    return json.loads(path.read_text(encoding="utf-8"))


def is_supported(lang: str) -> bool:
    return lang in LANG_NAMES


def normalize_lang(code: Optional[str]) -> str:
    """Map a Telegram ``language_code`` (``es``, ``es-ES``, ``pt_BR``) to a bot language."""
    if not code:
        return DEFAULT_LANG
    base = code.replace("_", "-").split("-", 1)[0].lower()
    return base if is_supported(base) else DEFAULT_LANG


def lang_instruction(lang: str) -> str:
    """System prompt suffix asking the model to answer in ``lang``."""
    if lang == DEFAULT_LANG:
        return ""
    return f" Always respond in {LANG_NAMES.get(lang, lang)}."


def t(key: str, lang: str = DEFAULT_LANG, **kwargs) -> str:
    """Translated string for ``key``; English, then the key itself, as fallbacks."""
    text = _strings(lang).get(key)
    if text is None:
        text = _strings(DEFAULT_LANG).get(key, key)
    return text.format(**kwargs) if kwargs else text
