"""Entry-time configuration scoping.

A scope only affects ``resolve_config()`` calls made inside it; components
that already hold a ``FrozenConfig`` never observe ambient changes.
"""

from collections.abc import Generator
from contextlib import contextmanager
import contextvars
from typing import Any

from .types import ResolvedConfig

_ambient_resolved_config: contextvars.ContextVar[ResolvedConfig] = (
    contextvars.ContextVar("recipe_extract_resolved_config")
)


def get_ambient_resolved_config() -> ResolvedConfig | None:
    """Return the configuration installed by an enclosing scope, if any."""
    try:
        return _ambient_resolved_config.get()
    except LookupError:
        return None


@contextmanager
def config_scope(config: ResolvedConfig) -> Generator[None]:
    """Temporarily resolve to ``config``.

    Example:
        with config_scope(resolve_config().with_overrides(use_real_api=False)):
            outcome = await extract_video(url)
    """
    token = _ambient_resolved_config.set(config)
    try:
        yield
    finally:
        _ambient_resolved_config.reset(token)


@contextmanager
def config_override(**overrides: Any) -> Generator[None]:
    """Scope with selected fields overridden on top of the current config."""
    base_config = get_ambient_resolved_config()
    if base_config is None:
        from . import resolve_config

        base_config = resolve_config()
    with config_scope(base_config.with_overrides(**overrides)):
        yield
