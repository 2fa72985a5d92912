"""Deterministic phrase rules mapping free text to skills."""

from __future__ import annotations

from dataclasses import dataclass, field

from openlight.semantic import normalize

_GENERIC_SERVICE_WORDS = frozenset(
    {
        "",
        "show",
        "check",
        "service",
        "services",
        "status",
        "restart",
        "logs",
        "log",
        "for",
        "of",
        "the",
        "me",
        "please",
        "recent",
        "latest",
        "last",
        "system",
        "overall",
        "agent",
        "all",
        "whole",
        "entire",
    }
)

_KEYWORD_SKILLS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("system status", "overall status", "agent status"), "status"),
    (("cpu", "processor usage"), "cpu"),
    (("memory", "ram"), "memory"),
    (("disk", "storage", "space left", "disk space"), "disk"),
    (("uptime", "how long has", "running for"), "uptime"),
    (("ip address", "what is my ip", "local ip"), "ip"),
    (("hostname", "host name"), "hostname"),
    (("temperature", "system temp", "cpu temp"), "temperature"),
    (("what can you do", "list skills", "available skills"), "skills"),
)


@dataclass(frozen=True)
class Match:
    """A skill chosen by a rule, with its arguments."""

    skill_name: str
    args: dict[str, str] = field(default_factory=dict)


def parse(text: str) -> Match | None:
    """Match ``text`` against the phrase rules; ``None`` when nothing applies."""
    normalized = normalize(text)
    if not normalized:
        return None

    if service := _extract_after_keyword(normalized, "restart"):
        return Match("service_restart", {"service": service})

    if service := _extract_logs_service(normalized):
        return Match("service_logs", {"service": service})

    if service := _extract_status_service(normalized):
        return Match("service_status", {"service": service})

    if note := _extract_note_text(normalized):
        return Match("note_add", {"text": note})

    if note_id := _extract_note_delete_id(normalized):
        return Match("note_delete", {"id": note_id})

    if _contains_any(normalized, ("list notes", "show notes", "notes list")):
        return Match("note_list", {})

    if topic := _extract_help_topic(normalized):
        return Match("help", {"topic": topic})

    for patterns, skill_name in _KEYWORD_SKILLS:
        if _contains_any(normalized, patterns):
            return Match(skill_name, {})

    return None


def _contains_any(text: str, patterns: tuple[str, ...]) -> bool:
    return any(pattern in text for pattern in patterns)


def _is_generic_service_word(word: str) -> bool:
    return word in _GENERIC_SERVICE_WORDS


def _first_concrete(words: list[str]) -> str:
    return next((w for w in words if not _is_generic_service_word(w)), "")


def _last_concrete(words: list[str]) -> str:
    return next((w for w in reversed(words) if not _is_generic_service_word(w)), "")


def _extract_after_keyword(text: str, keyword: str) -> str:
    words = text.split()
    for idx, word in enumerate(words):
        if word == keyword and (service := _first_concrete(words[idx + 1 :])):
            return service
    return ""


def _extract_logs_service(text: str) -> str:
    words = text.split()
    for idx, word in enumerate(words):
        if word not in ("logs", "log"):
            continue
        if service := _first_concrete(words[idx + 1 :]):
            return service
        if service := _last_concrete(words[:idx]):
            return service
    return ""


def _index_sequence(words: list[str], *sequence: str) -> int:
    size = len(sequence)
    if size == 0 or len(words) < size:
        return -1
    for idx in range(len(words) - size + 1):
        if tuple(words[idx : idx + size]) == sequence:
            return idx
    return -1


def _extract_status_service(text: str) -> str:
    words = text.split()
    if not words:
        return ""
    if words[0] in ("status", "service"):
        return _first_concrete(words[1:])
    idx = _index_sequence(words, "service", "status")
    if idx > 0:
        return _last_concrete(words[:idx])
    idx = _index_sequence(words, "status", "of")
    if idx >= 0:
        return _first_concrete(words[idx + 2 :])
    return ""


def _extract_note_text(text: str) -> str:
    for prefix in ("add note ", "note ", "remember "):
        if text.startswith(prefix):
            return text[len(prefix) :].strip()
    return ""


def _extract_help_topic(text: str) -> str:
    for prefix in ("help ", "usage "):
        if text.startswith(prefix):
            return text[len(prefix) :].strip()
    return ""


def _extract_note_delete_id(text: str) -> str:
    for prefix in ("delete note ", "remove note ", "note delete ", "note remove "):
        if text.startswith(prefix):
            words = text[len(prefix) :].split()
            return words[0] if words else ""
    return ""