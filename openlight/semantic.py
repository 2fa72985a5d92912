"""Text normalisation shared by the rule-based and LLM routing layers."""

from __future__ import annotations

import re

_NON_ALNUM = re.compile(r"[^\w\s./-]+")

# Ordered rewrite rules: at each position the first matching rule wins,
# so multi-word phrases must precede their single-word prefixes.
_REWRITE_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("оперативная", "память"), "memory"),
    (("оперативную", "память"), "memory"),
    (("оперативной", "памяти"), "memory"),
    (("покажи",), "show"),
    (("посмотри",), "show"),
    (("проверь",), "check"),
    (("глянь",), "check"),
    (("память",), "memory"),
    (("оперативка",), "memory"),
    (("оперативку",), "memory"),
    (("оперативке",), "memory"),
    (("оперативной",), "memory"),
    (("мемори",), "memory"),
    (("рам",), "memory"),
    (("ram",), "memory"),
    (("цпу",), "cpu"),
    (("проц",), "cpu"),
    (("процессора",), "cpu"),
    (("процессору",), "cpu"),
    (("процессор",), "cpu"),
    (("загрузка",), "usage"),
    (("диск",), "disk"),
    (("storage",), "disk"),
    (("место",), "disk"),
    (("логи",), "logs"),
    (("лог",), "logs"),
    (("журнал",), "logs"),
    (("перезапустить",), "restart"),
    (("перезапусти",), "restart"),
    (("рестартни",), "restart"),
    (("рестарт",), "restart"),
    (("сервиса",), "service"),
    (("сервисы",), "services"),
    (("сервис",), "service"),
    (("статус",), "status"),
    (("состояние",), "status"),
    (("температура",), "temperature"),
    (("темпа",), "temperature"),
    (("аптайм",), "uptime"),
    (("хост",), "hostname"),
    (("айпи",), "ip"),
    (("заметки",), "notes"),
    (("заметку",), "note"),
    (("заметка",), "note"),
    (("добавить",), "add"),
    (("добавь",), "add"),
    (("запомни",), "remember"),
    (("удалить",), "delete"),
    (("удали",), "delete"),
    (("скиллах",), "skills"),
    (("скиллы",), "skills"),
    (("скилы",), "skills"),
    (("умеешь",), "skills"),
    (("возможности",), "skills"),
    (("навыки",), "skills"),
    (("интернет",), "network"),
)


def normalize(value: str) -> str:
    """Lower-case, strip punctuation and rewrite known words to canonical tokens."""
    value = value.strip().lower()
    if not value:
        return ""

    words = _NON_ALNUM.sub(" ", value).split()
    result: list[str] = []
    idx = 0
    while idx < len(words):
        for pattern, target in _REWRITE_RULES:
            if tuple(words[idx : idx + len(pattern)]) == pattern:
                result.append(target)
                idx += len(pattern)
                break
        else:
            result.append(words[idx])
            idx += 1
    return " ".join(result)


def tokens(value: str) -> list[str]:
    """Return the normalised tokens of ``value``."""
    return normalize(value).split()