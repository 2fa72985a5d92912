[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "openlight"
version = "0.1.0"
description = "Message routing for a chat-driven host agent: slash and explicit commands, aliases, semantic rules and an LLM fallback classifier."
requires-python = ">=3.10"
dependencies = []
keywords = ["chatbot", "router", "intent", "classifier", "llm", "agent"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["openlight"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
