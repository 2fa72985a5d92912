"""Skill catalogue and LLM provider contracts used by the routers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence


@dataclass(frozen=True)
class GroupInfo:
    """A named group of related skills."""

    key: str
    title: str
    description: str = ""


GROUP_CORE = GroupInfo("core", "Core", "Help, skills list, start and ping.")
GROUP_SYSTEM = GroupInfo("system", "System", "System metrics and host info.")
GROUP_SERVICES = GroupInfo("services", "Services", "Service status, logs and restart.")
GROUP_FILES = GroupInfo("files", "Files", "Read, list, write and replace files.")
GROUP_WORKBENCH = GroupInfo("workbench", "Workbench", "Run code or allowed files.")
GROUP_NOTES = GroupInfo("notes", "Notes", "Add, list and delete notes.")
GROUP_CHAT = GroupInfo("chat", "Chat", "Free-form conversation.")
GROUP_OTHER = GroupInfo("other", "Other", "Uncategorised tools.")

_GROUP_ORDER = (
    GROUP_CORE.key,
    GROUP_SYSTEM.key,
    GROUP_SERVICES.key,
    GROUP_FILES.key,
    GROUP_WORKBENCH.key,
    GROUP_NOTES.key,
    GROUP_CHAT.key,
    GROUP_OTHER.key,
)


@dataclass(frozen=True)
class SkillDefinition:
    """Static description of a skill."""

    name: str
    description: str = ""
    aliases: tuple[str, ...] = ()
    group: GroupInfo = GROUP_OTHER
    mutating: bool = False
    hidden: bool = False


@dataclass(frozen=True)
class SkillOption:
    name: str
    description: str = ""
    mutating: bool = False


@dataclass(frozen=True)
class GroupOption:
    key: str
    title: str = ""
    description: str = ""


@dataclass
class RouteClassification:
    intent: str = ""
    confidence: float = 0.0
    needs_clarification: bool = False
    clarification_question: str = ""


@dataclass
class Classification:
    skill: str = ""
    arguments: dict[str, str] = field(default_factory=dict)
    confidence: float = 0.0
    needs_clarification: bool = False
    clarification_question: str = ""


@dataclass
class RouteClassificationRequest:
    groups: list[GroupOption] = field(default_factory=list)
    input_chars: int = 0
    num_predict: int = 0


@dataclass
class SkillClassificationRequest:
    allowed_skills: list[str] = field(default_factory=list)
    allowed_services: list[str] = field(default_factory=list)
    allowed_runtimes: list[str] = field(default_factory=list)
    candidate_skills: list[SkillOption] = field(default_factory=list)
    input_chars: int = 0
    num_predict: int = 0


class Provider(Protocol):
    """An LLM backend able to classify requests and chat."""

    def classify_route(
        self, text: str, request: RouteClassificationRequest
    ) -> RouteClassification: ...

    def classify_skill(
        self, text: str, request: SkillClassificationRequest
    ) -> Classification: ...

    def summarize(self, text: str) -> str: ...

    def chat(self, messages: Sequence[dict[str, str]]) -> str: ...


def _identifier_key(value: str) -> str:
    value = value.strip().removeprefix("/").lower()
    value = value.replace("_", " ").replace("-", " ")
    return " ".join(value.split())


class SkillRegistry:
    """Holds skill definitions by name and resolves names and aliases."""

    def __init__(self) -> None:
        self._skills: dict[str, SkillDefinition] = {}

    def register(self, definition: SkillDefinition) -> None:
        """Add a skill; raise ValueError for an empty or duplicate name."""
        name = definition.name.strip()
        if not name:
            raise ValueError("skill name must not be empty")
        if name in self._skills:
            raise ValueError(f"skill {name!r} is already registered")
        self._skills[name] = definition

    def get(self, name: str) -> SkillDefinition | None:
        return self._skills.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._skills

    def __len__(self) -> int:
        return len(self._skills)

    def list(self) -> list[SkillDefinition]:
        """All definitions, sorted by name."""
        return [self._skills[name] for name in sorted(self._skills)]

    def list_groups(self) -> list[GroupInfo]:
        """Groups that hold at least one visible skill, in a stable order."""
        groups: dict[str, GroupInfo] = {}
        for definition in self._skills.values():
            if not definition.hidden:
                groups.setdefault(definition.group.key, definition.group)

        def order(key: str) -> tuple[int, str]:
            rank = _GROUP_ORDER.index(key) if key in _GROUP_ORDER else len(_GROUP_ORDER)
            return rank, key

        return [groups[key] for key in sorted(groups, key=order)]

    def list_by_group(self, group_key: str) -> list[SkillDefinition]:
        """Visible definitions in one group, sorted by name."""
        return [
            definition
            for definition in self.list()
            if definition.group.key == group_key and not definition.hidden
        ]

    def resolve_identifier(self, text: str) -> SkillDefinition | None:
        """Find a skill whose name or alias equals ``text`` loosely."""
        key = _identifier_key(text)
        if not key:
            return None
        for definition in self.list():
            candidates = (definition.name, *definition.aliases)
            if any(_identifier_key(candidate) == key for candidate in candidates):
                return definition
        return None


def short_description(definition: SkillDefinition) -> str:
    """The definition's description, or its name when there is none."""
    return definition.description or definition.name