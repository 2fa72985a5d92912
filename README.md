# openlight

Routing for a chat-driven host agent. A message from a user goes through a
fixed pipeline and comes out as a `Decision`: which skill to run, with which
arguments, or a question to ask back.

The pipeline, in order:

1. **Slash commands** such as `/cpu`, `/logs tailscale`, `/chat explain disk pressure`.
2. **Explicit commands** of up to three words, such as `service logs tailscale`,
   `note_delete 2`, `read /etc/hostname`, `write ./tmp/test.txt :: hello`,
   `replace 8080 with 8081 in ./config.yaml`, `run python: print('hello')`.
3. **Registry aliases**: a skill's name or any of its aliases.
4. **Semantic rules** over normalized text, English and Russian
   (`show jellyfin logs`, `покажи логи tailscale`, `добавь заметку купить ssd`).
5. **An LLM classifier**, if one is given: first a tool group is chosen, then a
   skill in that group, with confidence thresholds and clarification questions.

## Installation

```
pip install .
```

The package has no runtime dependencies.

## Usage

```python
from openlight.router import Router, Mode

router = Router(registry, None, None)   # registry: a SkillRegistry
decision = router.route("/logs tailscale")
assert decision.mode is Mode.SLASH
assert decision.skill_name == "service_logs"
assert decision.args == {"service": "tailscale"}
```

`Decision.matched()` tells whether a skill was chosen, and
`Decision.should_clarify()` whether a question should be sent back instead.

### Text normalization

```python
from openlight.semantic import normalize

normalize("загрузка процессора")  # "usage cpu"
```

### LLM fallback

`openlight.classifier.LLMClassifier` takes a `Provider` (see
`openlight.contracts`), the skill registry, `Options` and an optional logger.
The provider answers two questions: which group a message belongs to
(`classify_route`) and which skill in that group, with which arguments
(`classify_skill`). Pass the classifier as the second argument to `Router`.

```python
from openlight.classifier import LLMClassifier, Options

classifier = LLMClassifier(provider, registry, Options(allowed_services=["tailscale"]), None)
router = Router(registry, classifier, None)
```

A route intent is executed only at or above the execute threshold (0.80 by
default); between the clarify threshold (0.60) and that, the user is asked
to clarify.

## Tests

```
pip install .[test]
pytest
```