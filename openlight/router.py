"""Routes incoming chat text to a skill.

Commands, aliases and phrase rules come first; an optional LLM classifier
handles what they leave unmatched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from openlight import rules
from openlight.contracts import SkillRegistry
from openlight.semantic import normalize

_MAX_LOGGED_TEXT_CHARS = 160

_RUNTIMES = frozenset(
    {"python", "python3", "sh", "shell", "bash", "node", "javascript", "js"}
)


class Mode(str, Enum):
    """How a routing decision was reached."""

    SLASH = "slash"
    EXPLICIT = "explicit"
    ALIAS = "alias"
    RULE = "rule"
    LLM = "llm"
    UNKNOWN = "unknown"


@dataclass
class Decision:
    """The outcome of routing one message."""

    mode: Mode
    skill_name: str = ""
    args: dict[str, str] = field(default_factory=dict)
    confidence: float = 0.0
    needs_clarification: bool = False
    clarification_question: str = ""

    def matched(self) -> bool:
        """True when a skill was chosen."""
        return bool(self.skill_name.strip())

    def should_clarify(self) -> bool:
        """True when the user should be asked a clarifying question."""
        return self.needs_clarification and bool(self.clarification_question.strip())


class Classifier(Protocol):
    """A fallback that picks a decision for text the rules did not match."""

    def classify(self, text: str) -> Decision | None: ...


class Router:
    """Runs the routing pipeline over a skill registry."""

    def __init__(
        self,
        registry: SkillRegistry,
        classifier: Classifier | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.registry = registry
        self.classifier = classifier
        self.logger = logger

    def route(self, text: str) -> Decision:
        """Pick a decision for ``text``; errors from the classifier propagate."""
        text = text.strip()
        if not text:
            return Decision(Mode.UNKNOWN)

        normalized = normalize(text)
        self._debug(
            "router pipeline started",
            text=_short_text(text),
            normalized_text=_short_text(normalized),
            classifier_enabled=self.classifier is not None,
        )

        decision = _route_slash(text)
        if decision is not None:
            self._debug("router matched slash command", skill=decision.skill_name, args=decision.args)
            return decision

        decision = _route_explicit(text)
        if decision is not None:
            self._debug("router matched explicit command", skill=decision.skill_name, args=decision.args)
            return decision

        definition = self.registry.resolve_identifier(text)
        if definition is not None:
            self._debug("router matched registry alias", skill=definition.name)
            return Decision(Mode.ALIAS, definition.name, {})

        match = rules.parse(text)
        if match is not None:
            self._debug(
                "router matched semantic rule",
                skill=match.skill_name,
                args=match.args,
                normalized_text=_short_text(normalized),
            )
            return Decision(Mode.RULE, match.skill_name, dict(match.args))

        if self.classifier is not None:
            self._debug("router invoking llm classifier", normalized_text=_short_text(normalized))
            decision = self.classifier.classify(text)
            if decision is not None:
                self._debug(
                    "router accepted llm classifier decision",
                    skill=decision.skill_name,
                    confidence=decision.confidence,
                    clarify=decision.should_clarify(),
                )
                return decision
            self._debug("router classifier produced no executable match")

        self._debug("router finished with no match", normalized_text=_short_text(normalized))
        return Decision(Mode.UNKNOWN)

    def _debug(self, message: str, **fields: Any) -> None:
        if self.logger is not None:
            details = " ".join(f"{key}={value!r}" for key, value in fields.items())
            self.logger.debug("%s %s", message, details)


def _short_text(value: str) -> str:
    value = value.strip()
    if len(value) <= _MAX_LOGGED_TEXT_CHARS:
        return value
    return value[:_MAX_LOGGED_TEXT_CHARS].strip() + "..."


def _route_slash(text: str) -> Decision | None:
    if not text.startswith("/"):
        return None
    words = text.split()
    if not words:
        return None
    command = normalize_route_command(words[0])
    args_text = text.removeprefix(words[0]).strip()
    return _route_command(command, args_text, Mode.SLASH)


def _route_explicit(text: str) -> Decision | None:
    words = text.split()
    for parts in range(min(len(words), 3), 0, -1):
        command = normalize_route_command(" ".join(words[:parts]))
        args_text = " ".join(words[parts:]).strip()
        decision = _route_command(command, args_text, Mode.EXPLICIT)
        if decision is not None:
            return decision
    return None


def _no_arg(mode: Mode, skill_name: str, args_text: str) -> Decision | None:
    if mode is not Mode.SLASH and args_text.strip():
        return None
    return Decision(mode, skill_name, {})


_NO_ARG_COMMANDS: dict[str, str] = {
    "start": "start",
    "ping": "ping",
    "cpu": "cpu",
    "memory": "memory",
    "ram": "memory",
    "disk": "disk",
    "storage": "disk",
    "uptime": "uptime",
    "ip": "ip",
    "hostname": "hostname",
    "host": "hostname",
    "temp": "temperature",
    "temperature": "temperature",
    "services": "service_list",
    "service list": "service_list",
    "notes": "note_list",
    "note list": "note_list",
    "list notes": "note_list",
    "workspace clean": "workspace_clean",
    "clean workspace": "workspace_clean",
}

# command -> (skill, name of the single argument holding the rest of the text)
_TEXT_ARG_COMMANDS: dict[str, tuple[str, str]] = {
    "help": ("help", "topic"),
    "skills": ("skills", "topic"),
    "service": ("service_status", "service"),
    "service status": ("service_status", "service"),
    "restart": ("service_restart", "service"),
    "service restart": ("service_restart", "service"),
    "logs": ("service_logs", "service"),
    "log": ("service_logs", "service"),
    "service logs": ("service_logs", "service"),
    "note delete": ("note_delete", "id"),
    "delete note": ("note_delete", "id"),
    "remove note": ("note_delete", "id"),
    "note remove": ("note_delete", "id"),
    "note": ("note_add", "text"),
    "note add": ("note_add", "text"),
    "add note": ("note_add", "text"),
    "remember": ("note_add", "text"),
    "chat": ("chat", "text"),
    "ask": ("chat", "text"),
}

_FILE_LIST_COMMANDS = frozenset({"files", "file list", "list files"})
_FILE_READ_COMMANDS = frozenset({"read", "show", "cat", "file read", "read file"})
_FILE_WRITE_COMMANDS = frozenset({"write", "file write", "write file", "create file"})
_FILE_REPLACE_COMMANDS = frozenset({"replace", "file replace", "replace file"})
_EXEC_CODE_COMMANDS = frozenset({"exec code", "run code"})
_EXEC_FILE_COMMANDS = frozenset({"exec file", "run file"})


def _route_command(command: str, args_text: str, mode: Mode) -> Decision | None:
    if command == "status":
        if not args_text:
            return Decision(mode, "status", {})
        return Decision(mode, "service_status", {"service": args_text})
    if command in _NO_ARG_COMMANDS:
        return _no_arg(mode, _NO_ARG_COMMANDS[command], args_text)
    if command in _TEXT_ARG_COMMANDS:
        skill_name, arg_name = _TEXT_ARG_COMMANDS[command]
        return Decision(mode, skill_name, {arg_name: args_text})
    if command in _FILE_LIST_COMMANDS:
        path = args_text.strip()
        return Decision(mode, "file_list", {"path": path} if path else {})

    args: dict[str, str] | None
    if command in _FILE_READ_COMMANDS:
        skill_name, args = "file_read", _parse_file_read_args(command, args_text)
    elif command in _FILE_WRITE_COMMANDS:
        skill_name, args = "file_write", _parse_file_write_args(args_text)
    elif command in _FILE_REPLACE_COMMANDS:
        skill_name, args = "file_replace", _parse_file_replace_args(args_text)
    elif command == "run":
        skill_name, args = "exec_code", _parse_exec_code_args(args_text)
        if args is None:
            skill_name, args = "exec_file", _parse_exec_file_args(args_text)
    elif command in _EXEC_CODE_COMMANDS:
        skill_name, args = "exec_code", _parse_exec_code_args(args_text)
    elif command in _EXEC_FILE_COMMANDS:
        skill_name, args = "exec_file", _parse_exec_file_args(args_text)
    else:
        return None

    if args is None:
        return None
    return Decision(mode, skill_name, args)


def normalize_route_command(value: str) -> str:
    """Canonical form of a command word: no slash or bot suffix, lower case, spaced."""
    value = value.strip().removeprefix("/")
    value = value.split("@", 1)[0]
    value = value.lower().replace("_", " ").replace("-", " ")
    return " ".join(value.split())


def _trim_single_leading_space(value: str) -> str:
    return value[1:] if value.startswith(" ") else value


def _parse_file_read_args(command: str, args_text: str) -> dict[str, str] | None:
    path = args_text.strip()
    if not path:
        return {} if command in ("read file", "file read") else None
    if not looks_like_path(path):
        return None
    return {"path": path}


def _parse_file_write_args(args_text: str) -> dict[str, str] | None:
    args_text = args_text.strip()
    if not args_text:
        return None

    path, content = args_text, ""
    if "\n" in args_text:
        head, content = args_text.split("\n", 1)
        path = head.strip()
    elif "::" in args_text:
        head, rest = args_text.split("::", 1)
        path = head.strip()
        content = _trim_single_leading_space(rest)

    if not looks_like_path(path):
        return None
    return {"path": path, "content": content}


def _parse_file_replace_args(args_text: str) -> dict[str, str] | None:
    args_text = args_text.strip()
    if not args_text:
        return None

    if "::" in args_text and "=>" in args_text:
        head, rest = args_text.split("::", 1)
        path = head.strip()
        if "=>" not in rest or not looks_like_path(path):
            return None
        find, replacement = rest.split("=>", 1)
        find = find.strip()
        if not find:
            return None
        return {"path": path, "find": find, "replace": _trim_single_leading_space(replacement)}

    lowered = args_text.lower()
    with_idx = lowered.find(" with ")
    in_idx = lowered.rfind(" in ")
    if with_idx <= 0 or in_idx <= with_idx + len(" with "):
        return None

    find = args_text[:with_idx].strip()
    replacement = args_text[with_idx + len(" with ") : in_idx].strip()
    path = args_text[in_idx + len(" in ") :].strip()
    if not find or not looks_like_path(path):
        return None
    return {"path": path, "find": find, "replace": replacement}


def _parse_exec_code_args(args_text: str) -> dict[str, str] | None:
    args_text = args_text.strip()
    if not args_text:
        return None

    if "::" in args_text:
        head, code = args_text.split("::", 1)
        runtime = head.strip()
        if not looks_like_runtime(runtime):
            return None
        return {"runtime": runtime, "code": _trim_single_leading_space(code)}

    if "\n" in args_text:
        head, code = args_text.split("\n", 1)
        header = head.strip().removesuffix(":")
        if looks_like_runtime(header):
            return {"runtime": header, "code": code}

    idx = args_text.find(":")
    if idx <= 0:
        return None
    runtime = args_text[:idx].strip()
    if not looks_like_runtime(runtime):
        return None
    return {"runtime": runtime, "code": _trim_single_leading_space(args_text[idx + 1 :])}


def _parse_exec_file_args(args_text: str) -> dict[str, str] | None:
    path = args_text.strip()
    if not looks_like_path(path):
        return None
    return {"path": path}


def looks_like_path(value: str) -> bool:
    """True when ``value`` reads as a file path rather than a word."""
    value = value.strip()
    if not value:
        return False
    if value.startswith(("/", "~", ".")):
        return True
    if "/" in value or "\\" in value:
        return True
    return "." in value


def looks_like_runtime(value: str) -> bool:
    """True when ``value`` names a supported code runtime."""
    return value.strip().lower() in _RUNTIMES