"""Two-layer LLM classifier: pick a tool group first, then a skill within it."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from openlight.contracts import (
    GROUP_CHAT,
    Classification,
    GroupOption,
    Provider,
    RouteClassification,
    RouteClassificationRequest,
    SkillClassificationRequest,
    SkillDefinition,
    SkillOption,
    SkillRegistry,
    short_description,
)
from openlight.questions import (
    clarification_question,
    clarification_question_for_group,
    clarification_question_for_skill_response,
    normalize_arguments,
    normalize_intent,
    normalize_list,
)
from openlight.router import Decision, Mode
from openlight.semantic import normalize

_DEFAULT_EXECUTE_THRESHOLD = 0.80
_DEFAULT_CLARIFY_THRESHOLD = 0.60
_DEFAULT_ROUTE_INPUT_CHARS = 96
_DEFAULT_ROUTE_NUM_PREDICT = 64
_DEFAULT_SKILL_INPUT_CHARS = 128
_DEFAULT_SKILL_NUM_PREDICT = 96

# skill -> (argument, question asked when that argument is blank)
_REQUIRED_ARGUMENTS: dict[str, tuple[tuple[str, str], ...]] = {
    "file_read": (("path", "Which file should I read?"),),
    "file_write": (("path", "Which file should I write?"),),
    "file_replace": (
        ("path", "Which file should I edit?"),
        ("find", "What text should I replace?"),
    ),
    "exec_code": (
        ("runtime", "Which runtime should I use?"),
        ("code", "What code should I run?"),
    ),
    "exec_file": (("path", "Which file should I run?"),),
    "service_restart": (("service", "Which service should I restart?"),),
    "note_add": (("text", "What note should I save?"),),
    "note_delete": (("id", "Which note ID should I delete?"),),
}

# Service skills that may fall back to the only allowed service.
_SERVICE_DEFAULTABLE = {
    "service_status": "Which service should I check?",
    "service_logs": "Which service logs should I show?",
}


@dataclass
class Options:
    """Tuning for the LLM classifier; zero values select the defaults."""

    allowed_services: list[str] = field(default_factory=list)
    allowed_workbench_runtimes: list[str] = field(default_factory=list)
    execute_threshold: float = 0.0
    clarify_threshold: float = 0.0
    input_chars: int = 0
    num_predict: int = 0


def build_skill_catalog(registry: SkillRegistry) -> dict[str, SkillDefinition]:
    """Visible skill definitions keyed by name."""
    return {d.name: d for d in registry.list() if not d.hidden}


def skill_option_names(skills: Iterable[SkillOption] | None) -> list[str]:
    """Names of the given skill options, in order."""
    return [skill.name for skill in skills or ()]


def group_option_keys(groups: Iterable[GroupOption] | None) -> list[str]:
    """Keys of the given group options, in order."""
    return [group.key for group in groups or ()]


def effective_layer_limit(base: int, limit: int) -> int:
    """The smaller positive value of ``base`` and ``limit``."""
    if base <= 0:
        return limit
    if limit <= 0:
        return base
    return min(base, limit)


def _skill_options(definitions: Iterable[SkillDefinition]) -> list[SkillOption]:
    chosen = sorted(
        (d for d in definitions if d.name != "chat"), key=lambda d: d.name
    )
    return [
        SkillOption(name=d.name, description=short_description(d), mutating=d.mutating)
        for d in chosen
    ]


class LLMClassifier:
    """Asks an LLM provider for a group, then for a skill and its arguments."""

    def __init__(
        self,
        provider: Provider,
        registry: SkillRegistry,
        options: Options | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        options = options or Options()
        execute = options.execute_threshold
        if execute <= 0 or execute > 1:
            execute = _DEFAULT_EXECUTE_THRESHOLD
        clarify = options.clarify_threshold
        if clarify <= 0 or clarify >= execute:
            clarify = _DEFAULT_CLARIFY_THRESHOLD

        self.provider = provider
        self.registry = registry
        self.logger = logger
        self.allowed_services = normalize_list(options.allowed_services)
        self.allowed_workbench_runtimes = normalize_list(options.allowed_workbench_runtimes)
        self.skill_catalog = build_skill_catalog(registry)
        self.execute_threshold = execute
        self.clarify_threshold = clarify
        self.route_input_chars = effective_layer_limit(options.input_chars, _DEFAULT_ROUTE_INPUT_CHARS)
        self.route_num_predict = effective_layer_limit(options.num_predict, _DEFAULT_ROUTE_NUM_PREDICT)
        self.skill_input_chars = effective_layer_limit(options.input_chars, _DEFAULT_SKILL_INPUT_CHARS)
        self.skill_num_predict = effective_layer_limit(options.num_predict, _DEFAULT_SKILL_NUM_PREDICT)

    def classify(self, text: str) -> Decision | None:
        """A decision for ``text``, or ``None`` when nothing executable came back."""
        normalized_text = normalize(text)
        groups = self._available_groups()
        self._debug(
            "llm route request",
            text=text,
            normalized_text=normalized_text,
            available_groups=group_option_keys(groups),
            input_chars=self.route_input_chars,
            num_predict=self.route_num_predict,
        )

        started = time.monotonic()
        route = self.provider.classify_route(
            text,
            RouteClassificationRequest(
                groups=groups,
                input_chars=self.route_input_chars,
                num_predict=self.route_num_predict,
            ),
        )
        self._debug(
            "llm route completed",
            route_intent=route.intent,
            route_confidence=route.confidence,
            route_needs_clarification=route.needs_clarification,
            route_available_groups=group_option_keys(groups),
            route_source="llm",
            route_latency_ms=int((time.monotonic() - started) * 1000),
        )

        decision, group_key = self._resolve_route(text, groups, route)
        if not group_key:
            return decision

        skills = self._available_skills_for_group(group_key)
        allowed_skills = skill_option_names(skills)
        allowed_services = self.allowed_services if group_key == "services" else []
        allowed_runtimes = self.allowed_workbench_runtimes if group_key == "workbench" else []
        self._debug(
            "llm skill request",
            text=text,
            normalized_text=normalized_text,
            group=group_key,
            allowed_skills=allowed_skills,
            allowed_services=allowed_services,
            allowed_runtimes=allowed_runtimes,
            input_chars=self.skill_input_chars,
            num_predict=self.skill_num_predict,
        )

        started = time.monotonic()
        classification = self.provider.classify_skill(
            text,
            SkillClassificationRequest(
                allowed_skills=list(allowed_skills),
                allowed_services=list(allowed_services),
                allowed_runtimes=list(allowed_runtimes),
                candidate_skills=skills,
                input_chars=self.skill_input_chars,
                num_predict=self.skill_num_predict,
            ),
        )
        latency_ms = int((time.monotonic() - started) * 1000)

        decision = self._resolve_skill(text, allowed_skills, route.confidence, classification)
        self._debug(
            "llm skill completed",
            group=group_key,
            decision_skill=classification.skill,
            decision_args=classification.arguments,
            decision_source="llm",
            decision_latency_ms=latency_ms,
            decision_routed_skill=decision.skill_name if decision else "",
            decision_matched=bool(decision and decision.matched()),
            decision_clarification=bool(decision and decision.should_clarify()),
        )
        return decision

    def _available_skills(self) -> list[SkillOption]:
        return _skill_options(self.skill_catalog.values())

    def _available_groups(self) -> list[GroupOption]:
        return [
            GroupOption(key=g.key, title=g.title, description=g.description)
            for g in self.registry.list_groups()
            if g.key != GROUP_CHAT.key
        ]

    def _available_skills_for_group(self, group_key: str) -> list[SkillOption]:
        return _skill_options(self.registry.list_by_group(group_key))

    def _clarify(self, confidence: float, question: str) -> Decision:
        return Decision(
            Mode.LLM,
            confidence=confidence,
            needs_clarification=True,
            clarification_question=question,
        )

    def _route_question(self, intent: str, groups: list[GroupOption], provided: str) -> str:
        if provided.strip():
            return provided.strip()
        if intent == "chat":
            return clarification_question("chat")
        if intent in group_option_keys(groups):
            return clarification_question_for_group(intent)
        return clarification_question("unknown")

    def _resolve_route(
        self, text: str, groups: list[GroupOption], route: RouteClassification
    ) -> tuple[Decision | None, str]:
        """A final decision, or the group key to continue with."""
        intent = normalize_intent(route.intent)
        confidence = route.confidence

        question = self._route_question(intent, groups, route.clarification_question)
        if route.needs_clarification and question:
            self._debug("llm route requested clarification", intent=intent, question=question)
            return self._clarify(confidence, question), ""

        if intent in ("", "unknown"):
            self._debug("llm route returned no executable intent", intent=intent, confidence=confidence)
            return None, ""

        if intent == "chat":
            if self.clarify_threshold <= confidence < self.execute_threshold:
                chat_question = clarification_question("chat", provided=route.clarification_question)
                if chat_question:
                    return self._clarify(confidence, chat_question), ""
            if confidence < self.execute_threshold:
                self._debug("llm route chat decision below execute threshold", confidence=confidence)
                return None, ""
            if self.registry.get("chat") is None:
                self._warn("llm requested chat but chat skill is not registered")
                return None, ""
            return Decision(Mode.LLM, "chat", {"text": text.strip()}, confidence), ""

        if intent in group_option_keys(groups):
            if confidence < self.execute_threshold:
                self._debug("llm route group decision below execute threshold", group=intent, confidence=confidence)
                if confidence >= self.clarify_threshold:
                    group_question = clarification_question_for_group(intent, route.clarification_question)
                    if group_question:
                        return self._clarify(confidence, group_question), ""
                return None, ""
            return None, intent

        self._warn("llm returned unsupported route intent", intent=intent)
        return None, ""

    def _resolve_skill(
        self,
        text: str,
        allowed_skills: list[str],
        confidence: float,
        classification: Classification,
    ) -> Decision | None:
        skill_name = normalize_intent(classification.skill)
        arguments = normalize_arguments(classification.arguments)

        question = clarification_question_for_skill_response(
            skill_name, arguments, classification.clarification_question
        )
        if classification.needs_clarification and question:
            self._debug("llm skill requested clarification", skill=skill_name, question=question)
            return self._clarify(confidence, question)

        if not skill_name and len(allowed_skills) == 1:
            skill_name = allowed_skills[0]
            self._debug("llm skill defaulted to the only available skill", skill=skill_name)

        if not skill_name:
            self._debug("llm skill returned no executable skill", args=arguments)
            return None

        if skill_name not in allowed_skills:
            self._warn("llm returned unsupported skill", skill=skill_name)
            return None

        if question := self._required_argument_question(skill_name, arguments):
            self._debug("llm skill missing required arguments", skill=skill_name, question=question)
            return self._clarify(confidence, question)

        definition = self.registry.get(skill_name)
        if definition is None:
            self._warn("llm returned unregistered skill", skill=skill_name)
            return None

        return Decision(
            Mode.LLM,
            definition.name,
            self._route_arguments(skill_name, arguments),
            confidence,
        )

    def _required_argument_question(self, skill_name: str, arguments: Mapping[str, str]) -> str:
        for key, question in _REQUIRED_ARGUMENTS.get(skill_name, ()):
            if not arguments.get(key, "").strip():
                return question
        if skill_name in _SERVICE_DEFAULTABLE:
            if not arguments.get("service", "").strip() and len(self.allowed_services) != 1:
                return _SERVICE_DEFAULTABLE[skill_name]
        return ""

    def _route_arguments(self, skill_name: str, arguments: Mapping[str, str]) -> dict[str, str]:
        def stripped(key: str) -> str:
            return arguments.get(key, "").strip()

        if skill_name == "file_list":
            path = stripped("path")
            return {"path": path} if path else {}
        if skill_name in ("file_read", "exec_file"):
            return {"path": stripped("path")}
        if skill_name == "file_write":
            return {"path": stripped("path"), "content": arguments.get("content", "")}
        if skill_name == "file_replace":
            return {
                "path": stripped("path"),
                "find": arguments.get("find", ""),
                "replace": arguments.get("replace", ""),
            }
        if skill_name == "exec_code":
            return {"runtime": stripped("runtime"), "code": arguments.get("code", "")}
        if skill_name in _SERVICE_DEFAULTABLE:
            service = stripped("service")
            if not service and len(self.allowed_services) == 1:
                service = self.allowed_services[0]
            return {"service": service} if service else {}
        if skill_name == "service_restart":
            return {"service": stripped("service")}
        if skill_name == "note_add":
            return {"text": stripped("text")}
        if skill_name == "note_delete":
            return {"id": stripped("id")}
        return {}

    def _log(self, level: int, message: str, fields: dict[str, Any]) -> None:
        if self.logger is not None:
            details = " ".join(f"{key}={value!r}" for key, value in fields.items())
            self.logger.log(level, "%s %s", message, details)

    def _debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, fields)

    def _warn(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, fields)