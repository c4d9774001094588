"""Token based dependency injection container.

This package provides a small dependency injection container for Python:
providers are registered under opaque tokens and resolved on demand, with
their declared parameter tokens injected positionally.

Exports:
- `Container`: registers providers, resolves tokens and lists registrations.
- `Provider`: descriptor telling the container how to build a token's value
  (`use_class`, `use_value`, `use_factory` or `use_factory_with_container`).
- `Scope`: lifecycle of a provider (singleton or transient).
- `ResolutionError`: base of `NotFoundError` and `CircularDependencyError`,
  carrying a `Code`.
"""

from ._container import Container, Provider, Scope
from ._errors import CircularDependencyError, Code, NotFoundError, ResolutionError


__all__ = [
    "CircularDependencyError",
    "Code",
    "Container",
    "NotFoundError",
    "Provider",
    "ResolutionError",
    "Scope",
]
