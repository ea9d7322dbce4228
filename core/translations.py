import gettext
import os

from pathlib import Path
from typing import Callable

# ruamel YAML support
from ruamel.yaml import YAML
yaml = YAML()


__all__ = [
    "get_translation",
    "get_language",
    "set_language",
    "load_language"
]


_language: str = 'en_US'


def get_translation(domain) -> Callable[[str], str]:
    def translate(message: str) -> str:
        # looked up per call, set_language() may run after the module-level get_translation()
        translation = gettext.translation(domain, localedir='locale', languages=[_language], fallback=True)
        return translation.gettext(message)

    return translate


def get_language() -> str:
    return _language


def set_language(language: str):
    global _language
    _language = language


def load_language(config_dir: str) -> str:
    try:
        config = yaml.load(Path(os.path.join(config_dir, 'main.yaml')).read_text(encoding='utf-8'))
        set_language((config or {}).get('language', 'en_US'))
    except FileNotFoundError:
        set_language('en_US')
    return _language
