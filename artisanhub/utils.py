"""
Shared utility functions.
"""

from __future__ import annotations

import importlib
import threading
import time
from contextlib import contextmanager
from functools import wraps
from types import ModuleType
from typing import TYPE_CHECKING, Callable, Generator, TypeVar

if TYPE_CHECKING:
    import logging

T = TypeVar("T")


def require_import(package: str, *, pip_name: str | None = None) -> ModuleType:
    """Import a provider SDK, naming the pip package when it is missing.

    Usage:
        genai = require_import("google.generativeai", pip_name="google-generativeai")

    Raises:
        ImportError: With the install command in the message.
    """
    try:
        return importlib.import_module(package)
    except ImportError as e:
        raise ImportError(
            f"{package} package required. Install with: pip install {pip_name or package}"
        ) from e


def thread_safe_singleton(factory_fn: Callable[[], T]) -> Callable[[], T]:
    """Decorator for thread-safe lazy singleton initialization.

    The wrapped factory runs once; later calls return the cached instance.
    ``reset()`` on the wrapper drops the instance (used by tests).
    """
    instance: T | None = None
    lock = threading.Lock()

    @wraps(factory_fn)
    def get_instance() -> T:
        nonlocal instance
        if instance is None:
            with lock:
                if instance is None:
                    instance = factory_fn()
        return instance

    def reset() -> None:
        nonlocal instance
        with lock:
            instance = None

    get_instance.reset = reset  # type: ignore[attr-defined]
    return get_instance


@contextmanager
def timed_operation(
    name: str,
    logger: logging.Logger | None = None,
    metrics_observer: Callable[[float], None] | None = None,
) -> Generator[None, None, None]:
    """Time a block, reporting seconds to ``metrics_observer`` and ms to ``logger``.

    Usage:
        with timed_operation("LLM generation", logger, observe_llm_duration):
            text, tokens = client.generate(system, user)
    """
    t0 = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - t0
        if metrics_observer is not None:
            metrics_observer(duration)
        if logger is not None:
            logger.info("%s: %.0fms", name, duration * 1000)
