from __future__ import annotations

from typing import Dict, List, Tuple

from app.common.errors import UnsupportedLanguage

# canonical name -> (Judge0 CE language id, accepted spellings)
_LANGUAGES: Dict[str, Tuple[int, Tuple[str, ...]]] = {
    "c++": (54, ("c++", "cpp", "cplusplus", "c plus plus")),
    "java": (62, ("java",)),
    "javascript": (63, ("javascript", "js", "node", "nodejs", "node.js")),
}

_ALIASES: Dict[str, str] = {
    alias: canonical
    for canonical, (_, aliases) in _LANGUAGES.items()
    for alias in aliases
}


def _normalise(name: str | None) -> str:
    return " ".join((name or "").strip().lower().split())


def canonical_language(name: str | None) -> str:
    """Return the canonical stored spelling for ``name`` (e.g. ``Cpp`` -> ``c++``)."""
    key = _ALIASES.get(_normalise(name))
    if key is None:
        raise UnsupportedLanguage(
            {"message": f"Unsupported language: {name!r}", "supported": supported_languages()}
        )
    return key


def resolve_language(name: str | None) -> int:
    """Map a human-readable language name to its Judge0 language id."""
    return _LANGUAGES[canonical_language(name)][0]


def supported_languages() -> List[str]:
    return sorted(_LANGUAGES)


def language_table() -> List[Dict[str, object]]:
    return [
        {"id": lang_id, "name": canonical, "aliases": list(aliases)}
        for canonical, (lang_id, aliases) in sorted(_LANGUAGES.items())
    ]


__all__ = ["resolve_language", "canonical_language", "supported_languages", "language_table"]
