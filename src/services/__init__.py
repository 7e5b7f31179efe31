"""
Services Layer

Wires the audit engine, completion chain, NLP service, persistence and
competitor pipeline into one container.
"""

from .container import ServiceContainer, build_container

__all__ = ["ServiceContainer", "build_container"]
