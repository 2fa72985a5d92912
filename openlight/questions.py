"""Clarifying questions and argument clean-up for the LLM routing layer."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

# Argument keys whose values may carry meaningful surrounding whitespace.
_RAW_VALUE_KEYS = frozenset(
    {
        "content",
        "find",
        "replace",
        "body",
        "old",
        "old_text",
        "new",
        "new_text",
        "from",
        "to",
    }
)

_FIXED_SKILL_QUESTIONS: dict[str, str] = {
    "status": "Do you want me to show system status?",
    "cpu": "Do you want me to show CPU usage?",
    "memory": "Do you want me to show memory usage?",
    "disk": "Do you want me to show disk usage?",
    "uptime": "Do you want me to show system uptime?",
    "temperature": "Do you want me to show device temperature?",
    "hostname": "Do you want me to show the hostname?",
    "ip": "Do you want me to show IP addresses?",
    "service_list": "Do you want me to list allowed services?",
    "file_list": "Do you want me to list whitelisted files or roots?",
    "note_list": "Do you want me to list saved notes?",
}

# skill -> (argument, question with the argument, question without it)
_ARG_SKILL_QUESTIONS: dict[str, tuple[str, str, str]] = {
    "file_read": ("path", "Do you want me to read {}?", "Which file should I read?"),
    "file_write": ("path", "Do you want me to write {}?", "Which file should I write?"),
    "file_replace": (
        "path",
        "Do you want me to replace text in {}?",
        "Which file should I edit?",
    ),
    "exec_code": (
        "runtime",
        "Do you want me to run that {} code?",
        "Which runtime should I use?",
    ),
    "exec_file": ("path", "Do you want me to run {}?", "Which file should I run?"),
    "service_restart": (
        "service",
        "Do you want me to restart {}?",
        "Which service should I restart?",
    ),
    "service_status": (
        "service",
        "Do you want me to check {} status?",
        "Which service should I check?",
    ),
    "service_logs": (
        "service",
        "Do you want me to show logs for {}?",
        "Which service logs should I show?",
    ),
    "note_delete": (
        "id",
        "Do you want me to delete note #{}?",
        "Which note ID should I delete?",
    ),
}

_GROUP_QUESTIONS: dict[str, str] = {
    "files": "Do you want to read, list, write, or replace a file?",
    "workbench": "Do you want to run code, run an allowed file, or clean the workspace?",
    "system": "Do you want something from system metrics or host info?",
    "services": "Do you want something about services, logs, or restart?",
    "notes": "Do you want to add, list, or delete a note?",
    "core": "Do you want help, skills list, start, or ping?",
    "": "Which kind of tool do you want: files, workbench, system, services, notes, or core?",
    "other": "Which kind of tool do you want: files, workbench, system, services, notes, or core?",
}

# argument -> keys that may stand in for it, in order of preference
_TRIMMED_FALLBACKS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("service", ("service_name", "name")),
    ("text", ("note", "note_text")),
    ("path", ("file", "file_path", "filename", "name")),
)
_CONTENT_FALLBACKS: tuple[str, ...] = ("body", "value")
_RUNTIME_FALLBACKS: tuple[str, ...] = ("language", "interpreter")
_RAW_FALLBACKS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("code", ("source", "source_code", "snippet")),
    ("find", ("old", "old_text", "from")),
    ("replace", ("new", "new_text", "to")),
)
_ID_FALLBACKS: tuple[str, ...] = ("note_id", "note")


def clarification_question(
    intent: str,
    skill_name: str = "",
    arguments: Mapping[str, str] | None = None,
    provided: str = "",
) -> str:
    """The provided question, or a default one for the intent."""
    if question := provided.strip():
        return question
    if intent == "chat":
        return "Do you want a normal chat reply?"
    if intent == "skill":
        return clarification_question_for_skill(skill_name, arguments)
    if intent in ("unknown", ""):
        return "Could you clarify what you want me to do?"
    return ""


def clarification_question_for_skill(
    skill_name: str, arguments: Mapping[str, str] | None = None
) -> str:
    """A default question confirming ``skill_name``; empty for unknown skills."""
    arguments = arguments or {}
    if skill_name in _FIXED_SKILL_QUESTIONS:
        return _FIXED_SKILL_QUESTIONS[skill_name]
    if skill_name == "note_add":
        if not arguments.get("text", "").strip():
            return "What note should I save?"
        return "Do you want me to save that as a note?"
    if skill_name in _ARG_SKILL_QUESTIONS:
        key, with_value, without_value = _ARG_SKILL_QUESTIONS[skill_name]
        value = arguments.get(key, "").strip()
        return with_value.format(value) if value else without_value
    return ""


def clarification_question_for_skill_response(
    skill_name: str, arguments: Mapping[str, str] | None, provided: str
) -> str:
    """The provided question, or the default one for ``skill_name``."""
    if question := provided.strip():
        return question
    return clarification_question_for_skill(skill_name, arguments)


def clarification_question_for_group(group_key: str, provided: str = "") -> str:
    """The provided question, or a default one for the tool group."""
    if question := provided.strip():
        return question
    return _GROUP_QUESTIONS.get(group_key, "Which tool group do you want?")


def normalize_intent(value: str) -> str:
    """Lower-case identifier with dashes and whitespace runs turned into '_'."""
    value = value.strip().lower().replace("-", "_")
    return "_".join(value.split())


def _first_present(result: Mapping[str, str], keys: Iterable[str], *, strip: bool) -> str:
    for key in keys:
        value = result.get(key, "")
        if strip:
            value = value.strip()
        if value:
            return value
    return ""


def normalize_arguments(arguments: Mapping[str, str] | None) -> dict[str, str]:
    """Clean argument keys and values and fill canonical names from synonyms."""
    result: dict[str, str] = {}
    for raw_key, value in (arguments or {}).items():
        key = raw_key.strip().lower()
        if not key:
            continue
        result[key] = value if key in _RAW_VALUE_KEYS else value.strip()

    for target, sources in _TRIMMED_FALLBACKS:
        if not result.get(target, "").strip():
            if value := _first_present(result, sources, strip=True):
                result[target] = value

    if not result.get("content", ""):
        if value := _first_present(result, _CONTENT_FALLBACKS, strip=False):
            result["content"] = value

    if not result.get("runtime", "").strip():
        if value := _first_present(result, _RUNTIME_FALLBACKS, strip=True):
            result["runtime"] = value

    for target, sources in _RAW_FALLBACKS:
        if not result.get(target, ""):
            if value := _first_present(result, sources, strip=False):
                result[target] = value

    if not result.get("id", "").strip():
        if value := _first_present(result, _ID_FALLBACKS, strip=True):
            result["id"] = value

    return result


def normalize_list(values: Iterable[str] | None) -> list[str]:
    """Lower-cased, stripped, non-empty values without duplicates, in order."""
    seen: dict[str, None] = {}
    for value in values or ():
        cleaned = value.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)