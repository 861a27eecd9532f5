from __future__ import annotations

from collections.abc import Iterable

PROJECT_SIGIL = "+"
CONTEXT_SIGIL = "@"


def _is_tag(token: str, sigil: str) -> bool:
    return token.startswith(sigil) and len(token) > 1


def parse_tags(text: str, sigil: str) -> tuple[str, ...]:
    found: list[str] = []
    for token in text.split():
        if _is_tag(token, sigil):
            name = token[1:]
            if name not in found:
                found.append(name)
    return tuple(found)


def parse_projects(*texts: str) -> tuple[str, ...]:
    return _merge(parse_tags(text, PROJECT_SIGIL) for text in texts)


def parse_contexts(*texts: str) -> tuple[str, ...]:
    return _merge(parse_tags(text, CONTEXT_SIGIL) for text in texts)


def strip_tags(text: str) -> str:
    words = [
        token
        for token in text.split()
        if not (_is_tag(token, PROJECT_SIGIL) or _is_tag(token, CONTEXT_SIGIL))
    ]
    return " ".join(words)


def encode_tags(tags: Iterable[str]) -> str:
    # Commas inside a tag are not escaped; such a tag splits on the next read.
    return ",".join(tags)


def decode_tags(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _merge(groups: Iterable[tuple[str, ...]]) -> tuple[str, ...]:
    merged: list[str] = []
    for group in groups:
        for name in group:
            if name not in merged:
                merged.append(name)
    return tuple(merged)
