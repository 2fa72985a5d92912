import pytest

from openlight.classifier import (
    LLMClassifier,
    Options,
    build_skill_catalog,
    effective_layer_limit,
    group_option_keys,
    skill_option_names,
)
from openlight.contracts import (
    GROUP_CHAT,
    GROUP_CORE,
    GROUP_FILES,
    GROUP_SERVICES,
    GROUP_SYSTEM,
    GROUP_WORKBENCH,
    Classification,
    GroupOption,
    RouteClassification,
    SkillDefinition,
    SkillOption,
    SkillRegistry,
)
from openlight.router import Mode


class StubProvider:
    def __init__(self, route=None, skill=None, error=None):
        self.route_classification = route or RouteClassification()
        self.skill_classification = skill or Classification()
        self.route_request = None
        self.skill_request = None
        self.error = error

    def classify_route(self, text, request):
        self.route_request = request
        if self.error is not None:
            raise self.error
        return self.route_classification

    def classify_skill(self, text, request):
        self.skill_request = request
        return self.skill_classification

    def summarize(self, text):
        return ""

    def chat(self, messages):
        return ""


def make_registry(*definitions):
    registry = SkillRegistry()
    for definition in definitions:
        registry.register(definition)
    return registry


def test_routes_high_confidence_intent():
    registry = make_registry(SkillDefinition("service_restart", group=GROUP_SERVICES, mutating=True))
    provider = StubProvider(
        RouteClassification(intent="services", confidence=0.97),
        Classification(skill="service_restart", arguments={"service": "tailscale"}),
    )
    classifier = LLMClassifier(provider, registry, Options(allowed_services=["tailscale"]))
    decision = classifier.classify("перезапусти tailscale")
    assert decision is not None
    assert decision.mode is Mode.LLM
    assert decision.skill_name == "service_restart"
    assert decision.args["service"] == "tailscale"


def test_asks_for_clarification_when_required_args_missing():
    registry = make_registry(SkillDefinition("service_restart", group=GROUP_SERVICES, mutating=True))
    provider = StubProvider(
        RouteClassification(intent="services", confidence=0.95),
        Classification(skill="service_restart", arguments={}),
    )
    classifier = LLMClassifier(provider, registry, Options(allowed_services=["tailscale"]))
    decision = classifier.classify("перезапусти сервис")
    assert decision is not None
    assert decision.should_clarify()
    assert decision.clarification_question == "Which service should I restart?"


def test_falls_back_on_low_confidence_unknown():
    registry = make_registry(SkillDefinition("chat", group=GROUP_CHAT))
    provider = StubProvider(RouteClassification(intent="unknown", confidence=0.32))
    assert LLMClassifier(provider, registry, Options()).classify("инет тупит") is None


def test_routes_chat_with_original_text():
    registry = make_registry(SkillDefinition("chat", group=GROUP_CHAT))
    provider = StubProvider(RouteClassification(intent="chat", confidence=0.88))
    decision = LLMClassifier(provider, registry, Options()).classify("привет, как дела")
    assert decision is not None
    assert decision.skill_name == "chat"
    assert decision.args["text"] == "привет, как дела"


def test_defaults_single_allowed_service():
    registry = make_registry(SkillDefinition("service_status", group=GROUP_SERVICES))
    provider = StubProvider(
        RouteClassification(intent="services", confidence=0.91),
        Classification(skill="service_status", arguments={}),
    )
    classifier = LLMClassifier(provider, registry, Options(allowed_services=["tailscale"]))
    decision = classifier.classify("что со статусом сервиса")
    assert decision is not None
    assert decision.skill_name == "service_status"
    assert decision.args["service"] == "tailscale"
    assert provider.skill_request.allowed_services == ["tailscale"]


def test_routes_mutating_skill_when_route_is_confident():
    registry = make_registry(SkillDefinition("service_restart", group=GROUP_SERVICES, mutating=True))
    provider = StubProvider(
        RouteClassification(intent="services", confidence=0.91),
        Classification(skill="service_restart", arguments={"service": "tailscale"}),
    )
    classifier = LLMClassifier(provider, registry, Options(allowed_services=["tailscale"]))
    decision = classifier.classify("restart tailscale")
    assert decision is not None
    assert not decision.should_clarify()
    assert decision.skill_name == "service_restart"
    assert decision.args["service"] == "tailscale"
    assert decision.confidence == 0.91


def test_uses_route_confidence_for_valid_skill_selection():
    registry = make_registry(SkillDefinition("status", group=GROUP_SYSTEM))
    provider = StubProvider(
        RouteClassification(intent="system", confidence=0.95),
        Classification(skill="status", arguments={}),
    )
    decision = LLMClassifier(provider, registry, Options()).classify("общий статус")
    assert decision is not None
    assert decision.skill_name == "status"
    assert decision.confidence == 0.95


def test_clarifies_missing_required_args_using_route_confidence():
    registry = make_registry(SkillDefinition("file_read", group=GROUP_FILES))
    provider = StubProvider(
        RouteClassification(intent="files", confidence=0.94),
        Classification(skill="file_read", arguments={}),
    )
    decision = LLMClassifier(provider, registry, Options()).classify("read something")
    assert decision is not None
    assert decision.should_clarify()
    assert decision.clarification_question == "Which file should I read?"
    assert decision.confidence == 0.94


def test_routes_file_read_with_path():
    registry = make_registry(SkillDefinition("file_read", group=GROUP_FILES))
    provider = StubProvider(
        RouteClassification(intent="files", confidence=0.93),
        Classification(skill="file_read", arguments={"path": "/etc/hostname"}),
    )
    decision = LLMClassifier(provider, registry, Options()).classify("read /etc/hostname")
    assert decision is not None
    assert decision.skill_name == "file_read"
    assert decision.args["path"] == "/etc/hostname"


def test_passes_workbench_runtimes_and_routes_exec_code():
    registry = make_registry(SkillDefinition("exec_code", group=GROUP_WORKBENCH, mutating=True))
    provider = StubProvider(
        RouteClassification(intent="workbench", confidence=0.98),
        Classification(skill="exec_code", arguments={"runtime": "python", "code": "print('hello')"}),
    )
    classifier = LLMClassifier(provider, registry, Options(allowed_workbench_runtimes=["python"]))
    decision = classifier.classify("run python: print('hello')")
    assert decision is not None
    assert decision.skill_name == "exec_code"
    assert decision.args == {"runtime": "python", "code": "print('hello')"}
    assert provider.skill_request.allowed_runtimes == ["python"]


def test_passes_visible_skills_to_llm():
    registry = make_registry(
        SkillDefinition("file_read", group=GROUP_FILES),
        SkillDefinition("memory", group=GROUP_SYSTEM),
        SkillDefinition("cpu", group=GROUP_SYSTEM),
        SkillDefinition("chat", group=GROUP_CHAT),
        SkillDefinition("skills", group=GROUP_CORE),
    )
    provider = StubProvider(
        RouteClassification(intent="system", confidence=0.92),
        Classification(skill="memory", arguments={}),
    )
    decision = LLMClassifier(provider, registry, Options()).classify("что там по оперативке")
    assert decision is not None
    allowed = provider.skill_request.allowed_skills
    assert "memory" in allowed
    assert "cpu" in allowed
    assert "chat" not in allowed
    assert provider.skill_request.candidate_skills
    keys = group_option_keys(provider.route_request.groups)
    assert "system" in keys
    assert "files" in keys
    assert "chat" not in keys
    assert provider.skill_request.allowed_services == []


def test_passes_decision_limits_to_provider():
    registry = make_registry(SkillDefinition("cpu", group=GROUP_SYSTEM))
    provider = StubProvider(
        RouteClassification(intent="system", confidence=0.91),
        Classification(skill="cpu", arguments={}),
    )
    classifier = LLMClassifier(provider, registry, Options(input_chars=160, num_predict=128))
    assert classifier.classify("что с cpu") is not None
    assert provider.route_request.input_chars == 96
    assert provider.route_request.num_predict == 64
    assert provider.skill_request.input_chars == 128
    assert provider.skill_request.num_predict == 96


def test_smaller_limits_are_kept():
    registry = make_registry(SkillDefinition("cpu", group=GROUP_SYSTEM))
    provider = StubProvider(
        RouteClassification(intent="system", confidence=0.91),
        Classification(skill="cpu"),
    )
    LLMClassifier(provider, registry, Options(input_chars=50, num_predict=10)).classify("cpu")
    assert provider.route_request.input_chars == 50
    assert provider.skill_request.num_predict == 10


def test_group_below_execute_threshold_asks_group_question():
    registry = make_registry(SkillDefinition("file_read", group=GROUP_FILES))
    provider = StubProvider(RouteClassification(intent="files", confidence=0.7))
    decision = LLMClassifier(provider, registry).classify("something with files")
    assert decision is not None
    assert decision.clarification_question == "Do you want to read, list, write, or replace a file?"
    assert provider.skill_request is None


def test_group_below_clarify_threshold_is_no_match():
    registry = make_registry(SkillDefinition("file_read", group=GROUP_FILES))
    provider = StubProvider(RouteClassification(intent="files", confidence=0.3))
    assert LLMClassifier(provider, registry).classify("hmm") is None


def test_chat_mid_confidence_asks_for_chat():
    registry = make_registry(SkillDefinition("chat", group=GROUP_CHAT))
    provider = StubProvider(RouteClassification(intent="chat", confidence=0.7))
    decision = LLMClassifier(provider, registry).classify("hello")
    assert decision is not None
    assert decision.clarification_question == "Do you want a normal chat reply?"


def test_chat_without_registered_skill_is_no_match():
    registry = make_registry(SkillDefinition("cpu", group=GROUP_SYSTEM))
    provider = StubProvider(RouteClassification(intent="chat", confidence=0.95))
    assert LLMClassifier(provider, registry).classify("hello") is None


def test_route_clarification_uses_provided_question():
    registry = make_registry(SkillDefinition("cpu", group=GROUP_SYSTEM))
    provider = StubProvider(
        RouteClassification(
            intent="system",
            confidence=0.5,
            needs_clarification=True,
            clarification_question=" Which metric? ",
        )
    )
    decision = LLMClassifier(provider, registry).classify("stats")
    assert decision is not None
    assert decision.should_clarify()
    assert decision.clarification_question == "Which metric?"
    assert decision.confidence == 0.5


def test_unsupported_route_intent_is_no_match():
    registry = make_registry(SkillDefinition("cpu", group=GROUP_SYSTEM))
    provider = StubProvider(RouteClassification(intent="weather", confidence=0.99))
    assert LLMClassifier(provider, registry).classify("rain?") is None


def test_unsupported_skill_is_no_match():
    registry = make_registry(
        SkillDefinition("cpu", group=GROUP_SYSTEM),
        SkillDefinition("memory", group=GROUP_SYSTEM),
    )
    provider = StubProvider(
        RouteClassification(intent="system", confidence=0.99),
        Classification(skill="file_read", arguments={"path": "/tmp/x"}),
    )
    assert LLMClassifier(provider, registry).classify("read") is None


def test_empty_skill_defaults_to_only_skill():
    registry = make_registry(SkillDefinition("cpu", group=GROUP_SYSTEM))
    provider = StubProvider(
        RouteClassification(intent="system", confidence=0.9),
        Classification(skill=""),
    )
    decision = LLMClassifier(provider, registry).classify("load")
    assert decision is not None
    assert decision.skill_name == "cpu"
    assert decision.args == {}


def test_argument_synonyms_are_normalised():
    registry = make_registry(SkillDefinition("file_replace", group=GROUP_FILES))
    provider = StubProvider(
        RouteClassification(intent="files", confidence=0.9),
        Classification(
            skill="File-Replace",
            arguments={"File": " ./config.yaml ", "old": "8080", "new": "8081"},
        ),
    )
    decision = LLMClassifier(provider, registry).classify("swap port")
    assert decision is not None
    assert decision.args == {"path": "./config.yaml", "find": "8080", "replace": "8081"}


def test_provider_error_propagates():
    registry = make_registry(SkillDefinition("cpu", group=GROUP_SYSTEM))
    provider = StubProvider(error=RuntimeError("backend down"))
    with pytest.raises(RuntimeError, match="backend down"):
        LLMClassifier(provider, registry).classify("cpu")


def test_invalid_thresholds_fall_back_to_defaults():
    registry = make_registry(SkillDefinition("cpu", group=GROUP_SYSTEM))
    classifier = LLMClassifier(
        StubProvider(), registry, Options(execute_threshold=1.5, clarify_threshold=0.9)
    )
    assert classifier.execute_threshold == 0.80
    assert classifier.clarify_threshold == 0.60


def test_allowed_lists_are_normalised():
    registry = make_registry(SkillDefinition("cpu", group=GROUP_SYSTEM))
    classifier = LLMClassifier(
        StubProvider(), registry, Options(allowed_services=[" Tailscale ", "tailscale", "", "nginx"])
    )
    assert classifier.allowed_services == ["tailscale", "nginx"]


@pytest.mark.parametrize(
    "base, limit, expected",
    [(0, 96, 96), (-1, 64, 64), (50, 0, 50), (50, 96, 50), (160, 96, 96)],
)
def test_effective_layer_limit(base, limit, expected):
    assert effective_layer_limit(base, limit) == expected


def test_build_skill_catalog_skips_hidden():
    registry = make_registry(
        SkillDefinition("cpu", group=GROUP_SYSTEM),
        SkillDefinition("secret_tool", hidden=True),
    )
    assert list(build_skill_catalog(registry)) == ["cpu"]


def test_option_names_and_keys():
    assert skill_option_names([SkillOption("b"), SkillOption("a")]) == ["b", "a"]
    assert skill_option_names(None) == []
    assert group_option_keys([GroupOption("files"), GroupOption("system")]) == ["files", "system"]
    assert group_option_keys([]) == []