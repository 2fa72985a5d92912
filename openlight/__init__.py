"""Routing of chat messages to agent skills by command, alias, rule or LLM."""

__version__ = "0.1.0"
__all__ = ["semantic", "rules", "contracts", "router", "questions", "classifier"]