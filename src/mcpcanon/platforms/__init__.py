# Platform translator registry
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from mcpcanon.models import Translator
from mcpcanon.platforms.base import (
    FieldNotSupportedError,
    RequiredFieldMissingError,
    TranslationError,
    find_lossy_fields,
    read_platform_file,
    write_platform_file,
)
from mcpcanon.platforms.claude import ClaudeTranslator
from mcpcanon.platforms.gemini import GeminiTranslator
from mcpcanon.platforms.opencode import OpenCodeTranslator

# Built-in translators, registered at import time
ALL_TRANSLATORS: list[type] = [
    ClaudeTranslator,
    GeminiTranslator,
    OpenCodeTranslator,
]

__all__ = [
    "Translator",
    "ClaudeTranslator",
    "GeminiTranslator",
    "OpenCodeTranslator",
    "ALL_TRANSLATORS",
    "TranslationError",
    "FieldNotSupportedError",
    "RequiredFieldMissingError",
    "find_lossy_fields",
    "read_platform_file",
    "write_platform_file",
    "register_translator",
    "get_translator",
    "get_all_translators",
    "platform_names",
]


class _ReadWriteLock:
    """Many concurrent readers or one exclusive writer.

    ABOUTME: Waiting writers block new readers so registration can't starve
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


_lock = _ReadWriteLock()
_registry: dict[str, Translator] = {}


def register_translator(translator: Translator) -> None:
    """Add a translator to the registry under its platform name.

    ABOUTME: Registration takes the write lock; duplicate names are rejected

    Raises:
        TypeError: If translator doesn't implement the Translator protocol
        ValueError: If the platform name is empty or already registered
    """
    if not isinstance(translator, Translator):
        raise TypeError(f"{translator!r} does not implement Translator")

    name = translator.platform
    if not name:
        raise ValueError("invalid platform name: ''")

    with _lock.write():
        if name in _registry:
            raise ValueError(f"platform already registered: {name}")
        _registry[name] = translator


def get_translator(name: str) -> Translator:
    """Return the translator registered for a platform.

    Raises:
        KeyError: If no translator is registered under name
    """
    with _lock.read():
        try:
            return _registry[name]
        except KeyError:
            raise KeyError(f"platform not registered: {name}") from None


def get_all_translators() -> list[Translator]:
    """Return all registered translators sorted by platform name."""
    with _lock.read():
        return [_registry[name] for name in sorted(_registry)]


def platform_names() -> list[str]:
    """Return the sorted names of all registered platforms."""
    with _lock.read():
        return sorted(_registry)


for _translator_cls in ALL_TRANSLATORS:
    register_translator(_translator_cls())
