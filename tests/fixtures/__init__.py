"""Shared testing fixtures and stubs for the uniconvert test suite."""

from .converter import ScriptedConverter  # noqa: F401
from .openai import OpenAIStub, OpenAIStubFactory, StatusError  # noqa: F401
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "OpenAIStub",
    "OpenAIStubFactory",
    "ScriptedConverter",
    "StatusError",
    "WorkspaceBuilder",
    "build_tree",
]
