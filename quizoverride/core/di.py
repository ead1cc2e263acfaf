from __future__ import annotations

__all__ = [
    "NotReady",
    "Provide",
    "inject",
]

from dependency_injector.wiring import inject, Provide

from quizoverride.lib import NotReady
