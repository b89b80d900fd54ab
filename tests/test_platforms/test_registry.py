# Tests for the platform translator registry
import threading

import pytest

from mcpcanon import platforms
from mcpcanon.models import Config
from mcpcanon.platforms import (
    ClaudeTranslator,
    get_all_translators,
    get_translator,
    platform_names,
    register_translator,
)


class _FakeTranslator:
    """Minimal Translator used to exercise registration."""

    def __init__(self, platform: str) -> None:
        self._platform = platform

    @property
    def platform(self) -> str:
        return self._platform

    @property
    def lossy_fields(self) -> frozenset[str]:
        return frozenset()

    @property
    def resolves_transport(self) -> bool:
        return False

    def to_canonical(self, data: bytes) -> Config:
        return Config()

    def from_canonical(self, config: Config, existing: bytes | None = None) -> bytes:
        return b""


@pytest.fixture
def isolated_registry(monkeypatch):
    """Give each test its own copy of the registry."""
    monkeypatch.setattr(platforms, "_registry", dict(platforms._registry))
    return platforms._registry


def test_builtin_platforms_registered() -> None:
    """Test that the three built-in translators are registered at import."""
    assert platform_names() == ["claude", "gemini", "opencode"]
    assert isinstance(get_translator("claude"), ClaudeTranslator)


def test_get_all_translators_sorted() -> None:
    """Test that translators come back sorted by platform name."""
    assert [t.platform for t in get_all_translators()] == ["claude", "gemini", "opencode"]


def test_get_unknown_platform() -> None:
    """Test that an unknown name raises KeyError with the name."""
    with pytest.raises(KeyError, match="platform not registered: cursor"):
        get_translator("cursor")


def test_register_new_translator(isolated_registry) -> None:
    """Test that a new platform becomes available for lookup."""
    register_translator(_FakeTranslator("cursor"))

    assert get_translator("cursor").platform == "cursor"
    assert "cursor" in platform_names()


def test_register_duplicate_rejected(isolated_registry) -> None:
    """Test that a registered name cannot be taken again."""
    with pytest.raises(ValueError, match="platform already registered: claude"):
        register_translator(_FakeTranslator("claude"))


def test_register_empty_name_rejected(isolated_registry) -> None:
    """Test that an empty platform name is rejected."""
    with pytest.raises(ValueError):
        register_translator(_FakeTranslator(""))


def test_register_non_translator_rejected(isolated_registry) -> None:
    """Test that objects without the protocol are rejected."""
    with pytest.raises(TypeError):
        register_translator(object())


def test_concurrent_registration_single_winner(isolated_registry) -> None:
    """Test that racing registrations of one name admit exactly one."""
    successes = []
    failures = []
    barrier = threading.Barrier(8)

    def register() -> None:
        barrier.wait()
        try:
            register_translator(_FakeTranslator("racer"))
            successes.append(True)
        except ValueError:
            failures.append(True)

    threads = [threading.Thread(target=register) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(successes) == 1
    assert len(failures) == 7


def test_readers_share_the_lock() -> None:
    """Test that two lookups can hold the registry lock at the same time."""
    lock = platforms._ReadWriteLock()
    both_inside = threading.Barrier(2, timeout=5)
    errors = []

    def read() -> None:
        with lock.read():
            try:
                both_inside.wait()
            except threading.BrokenBarrierError as e:
                errors.append(e)

    threads = [threading.Thread(target=read) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []


def test_writer_excludes_readers(monkeypatch) -> None:
    """Test that a lookup waits while registration holds the lock."""
    lock = platforms._ReadWriteLock()
    monkeypatch.setattr(platforms, "_lock", lock)
    found = []

    def lookup() -> None:
        found.append(get_translator("claude").platform)

    with lock.write():
        reader = threading.Thread(target=lookup)
        reader.start()
        reader.join(timeout=0.2)
        assert reader.is_alive()
        assert found == []

    reader.join(timeout=5)
    assert found == ["claude"]
