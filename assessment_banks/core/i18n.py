"""
Message lookup for user-facing default strings.

Messages are looked up in a gettext catalog under their key; when the catalog
has no entry the English default is used. Placeholders use ``%{name}``.
"""
import gettext
import re
from functools import lru_cache

from assessment_banks.core.config import settings

DOMAIN = "assessment_banks"
_PLACEHOLDER = re.compile(r"%\{(\w+)\}")


@lru_cache()
def _catalog(locale: str) -> gettext.NullTranslations:
    return gettext.translation(DOMAIN, localedir=settings.LOCALE_DIR, languages=[locale], fallback=True)


def t(key: str, default: str, locale: str | None = None, **kwargs) -> str:
    catalog = _catalog(locale or settings.LOCALE)
    message = catalog.gettext(key)
    if message == key:
        message = default

    def interpolate(match: re.Match) -> str:
        name = match.group(1)
        if name not in kwargs:
            raise KeyError(f"missing interpolation argument {name!r} for {key!r}")
        return str(kwargs[name])

    return _PLACEHOLDER.sub(interpolate, message)
