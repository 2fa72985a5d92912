import pytest

from openlight.questions import (
    clarification_question,
    clarification_question_for_group,
    clarification_question_for_skill,
    clarification_question_for_skill_response,
    normalize_arguments,
    normalize_intent,
    normalize_list,
)


def test_provided_question_wins_and_is_stripped():
    assert clarification_question("chat", "", None, "  Really?  ") == "Really?"


@pytest.mark.parametrize(
    "intent, expected",
    [
        ("chat", "Do you want a normal chat reply?"),
        ("unknown", "Could you clarify what you want me to do?"),
        ("", "Could you clarify what you want me to do?"),
        ("something", ""),
    ],
)
def test_clarification_question_defaults(intent, expected):
    assert clarification_question(intent, "", None, "") == expected


def test_clarification_question_skill_intent_delegates():
    assert clarification_question("skill", "cpu", {}, "") == clarification_question_for_skill("cpu", {})


@pytest.mark.parametrize(
    "skill, expected",
    [
        ("status", "Do you want me to show system status?"),
        ("memory", "Do you want me to show memory usage?"),
        ("note_list", "Do you want me to list saved notes?"),
        ("file_read", "Which file should I read?"),
        ("service_restart", "Which service should I restart?"),
        ("exec_code", "Which runtime should I use?"),
        ("note_add", "What note should I save?"),
        ("note_delete", "Which note ID should I delete?"),
        ("unheard_of", ""),
    ],
)
def test_skill_questions_without_arguments(skill, expected):
    assert clarification_question_for_skill(skill, {}) == expected


def test_skill_question_mentions_argument():
    question = clarification_question_for_skill("service_restart", {"service": " tailscale "})
    assert question.startswith("Do you want me to restart ")
    assert "tailscale" in question
    assert " tailscale " not in question


def test_note_delete_question_includes_id():
    question = clarification_question_for_skill("note_delete", {"id": "2"})
    assert question.startswith("Do you want me to delete note #")
    assert question.endswith("2?")


def test_note_add_with_text():
    assert clarification_question_for_skill("note_add", {"text": "milk"}) == (
        "Do you want me to save that as a note?"
    )


def test_skill_response_prefers_provided():
    assert clarification_question_for_skill_response("cpu", {}, " which? ") == "which?"
    assert clarification_question_for_skill_response("file_read", {}, "") == "Which file should I read?"


@pytest.mark.parametrize(
    "group, expected",
    [
        ("files", "Do you want to read, list, write, or replace a file?"),
        ("notes", "Do you want to add, list, or delete a note?"),
        ("core", "Do you want help, skills list, start, or ping?"),
        ("mystery", "Which tool group do you want?"),
    ],
)
def test_group_questions(group, expected):
    assert clarification_question_for_group(group, "") == expected


def test_group_question_empty_and_other_match():
    assert clarification_question_for_group("", "") == clarification_question_for_group("other", "")
    assert clarification_question_for_group("files", " custom ") == "custom"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("  Service-Restart ", "service_restart"),
        ("file  read", "file_read"),
        ("", ""),
    ],
)
def test_normalize_intent(value, expected):
    assert normalize_intent(value) == expected


def test_normalize_intent_is_idempotent():
    once = normalize_intent(" Exec - Code ")
    assert normalize_intent(once) == once


def test_normalize_arguments_keys_and_trimming():
    result = normalize_arguments({" Service ": " tailscale ", "Content": "  keep  ", " ": "x"})
    assert result["service"] == "tailscale"
    assert result["content"] == "  keep  "
    assert "" not in result


def test_normalize_arguments_synonyms():
    result = normalize_arguments(
        {"file_path": " /etc/hostname ", "language": "python", "snippet": "print(1)", "old": "a", "new": "b"}
    )
    assert result["path"] == "/etc/hostname"
    assert result["runtime"] == "python"
    assert result["code"] == "print(1)"
    assert result["find"] == "a"
    assert result["replace"] == "b"


def test_normalize_arguments_name_fills_service_and_path():
    result = normalize_arguments({"name": "tailscale"})
    assert result["service"] == "tailscale"
    assert result["path"] == "tailscale"


def test_normalize_arguments_note_fills_text_and_id():
    result = normalize_arguments({"note": " 7 "})
    assert result["text"] == "7"
    assert result["id"] == "7"


def test_normalize_arguments_keeps_existing_values():
    result = normalize_arguments({"path": "./a.txt", "file": "./b.txt", "body": "x", "content": "y"})
    assert result["path"] == "./a.txt"
    assert result["content"] == "y"


def test_normalize_arguments_empty():
    assert normalize_arguments(None) == {}
    assert normalize_arguments({}) == {}


def test_normalize_list():
    assert normalize_list([" Tailscale", "tailscale ", "", "  ", "Jellyfin"]) == ["tailscale", "jellyfin"]
    assert normalize_list(None) == []