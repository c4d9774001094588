from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any

from ._errors import CircularDependencyError, NotFoundError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterable

    Token = Hashable
    Descriptor = Provider | Mapping[str, Any]


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class Scope(Enum):
    SINGLETON = "Singleton"
    TRANSIENT = "Transient"


class Strategy(Enum):
    CLASS = "use_class"
    VALUE = "use_value"
    FACTORY = "use_factory"
    FACTORY_WITH_CONTAINER = "use_factory_with_container"


@dataclass(frozen=True)
class Provider:
    """Describes how the value registered under `token` is built.

    Exactly one of `use_class`, `use_value`, `use_factory` or
    `use_factory_with_container` must be set. `params` are tokens resolved
    and passed positionally to `use_class` / `use_factory`. A `scope` of
    None falls back to the container's default scope.
    """

    token: Any
    use_class: type | None = None
    use_value: Any = MISSING
    use_factory: Callable[..., Any] | None = None
    use_factory_with_container: Callable[[Container], Any] | None = None
    params: tuple[Any, ...] = field(default=())
    scope: Scope | str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.params, str):
            msg = f"`params` of {self.token!r} must be a sequence of tokens, not a string."
            raise ValueError(msg)
        object.__setattr__(self, "params", () if self.params is None else tuple(self.params))


_PROVIDER_FIELDS = frozenset(f.name for f in fields(Provider))


@dataclass(frozen=True)
class Registration:
    descriptor: Descriptor  # as passed to register(), returned by list()
    strategy: Strategy
    target: Any
    params: tuple[Any, ...]
    scope: Scope


class Container:
    """Token based DI container.

    - register providers in batches, last registration of a token wins
    - resolve with positional injection of `params`
    - scopes: singleton / transient
    - circular dependency detection with the full resolution path.
    """

    def __init__(self, *, default_scope: Scope | str = Scope.SINGLETON) -> None:
        self._default_scope = _coerce_scope(default_scope, token=None)
        self._registrations: dict[Any, Registration] = {}
        self._instances: dict[Any, Any] = {}
        self._lock = threading.RLock()
        # Tokens mid-resolution; one stack per thread, shared by nested resolve() calls.
        self._local = threading.local()

    def register(self, descriptors: Iterable[Descriptor]) -> None:
        """Register a batch of providers.

        The whole batch is validated before anything is stored. Re-registering
        a token replaces its provider but keeps an already cached singleton.

        Example:
          container.register([
              {"token": "db", "use_factory": create_db, "params": ["dsn"]},
              Provider("dsn", use_value="sqlite://"),
          ])

        """
        registrations = [self._build_registration(d) for d in descriptors]

        with self._lock:
            for reg in registrations:
                token = _token_of(reg.descriptor)
                if token in self._registrations:
                    logger.debug("Replacing provider registered for %r", token)
                    # keep the slot in list() at the position of the latest registration
                    del self._registrations[token]
                else:
                    logger.debug("Registering %s provider for %r", reg.strategy.value, token)
                self._registrations[token] = reg

    def register_instance(self, token: Token, value: Any, *, replace: bool = False) -> None:
        """Register a pre-built value (a `use_value` provider)."""
        with self._lock:
            if not replace and token in self._registrations:
                msg = f"Token {token!r} is already registered. Pass replace=True to overwrite."
                raise KeyError(msg)
            self.register([Provider(token, use_value=value)])

    def resolve(self, token: Token) -> Any:
        """Resolve the token to a value.

        - A token already on the resolution path raises CircularDependencyError.
        - A cached singleton is returned as is.
        - Otherwise `params` are resolved depth first and handed to the provider.
        Raises NotFoundError naming the first token found without a provider.

        The container lock is held while providers run: a factory that hands
        resolution to another thread and waits for it deadlocks.
        """
        with self._lock:
            path = self._resolution_path()

            if token in path:
                logger.debug("Circular dependency on %r while resolving %r", token, path)
                raise CircularDependencyError(token, path)

            if token in self._instances:
                return self._instances[token]

            reg = self._registrations.get(token)
            if reg is None:
                logger.debug("No provider registered for %r", token)
                raise NotFoundError(token)

            path.append(token)
            try:
                instance = self._construct(reg)

                if reg.scope is Scope.SINGLETON:
                    logger.debug("Caching singleton for %r", token)
                    self._instances[token] = instance
            finally:
                path.pop()

            return instance

    def list(self) -> list[Descriptor]:
        """Registered descriptors, in registration order, exactly as they were passed in."""
        with self._lock:
            return [reg.descriptor for reg in self._registrations.values()]

    def tokens(self) -> list[Any]:
        with self._lock:
            return list(self._registrations)

    def is_registered(self, token: Token) -> bool:
        with self._lock:
            return token in self._registrations

    def __contains__(self, token: object) -> bool:
        return self.is_registered(token)

    def _construct(self, reg: Registration) -> Any:
        if reg.strategy is Strategy.VALUE:
            return reg.target

        if reg.strategy is Strategy.FACTORY_WITH_CONTAINER:
            return reg.target(self)

        # Same token twice in params means two separate resolutions.
        args = [self.resolve(param) for param in reg.params]
        return reg.target(*args)

    def _resolution_path(self) -> list[Any]:
        path = getattr(self._local, "path", None)
        if path is None:
            path = self._local.path = []
        return path

    def _build_registration(self, descriptor: Descriptor) -> Registration:
        provider = _as_provider(descriptor)
        strategy = _strategy_of(provider)
        target = getattr(provider, strategy.value)

        if strategy is Strategy.CLASS and not inspect.isclass(target):
            msg = f"`use_class` of {provider.token!r} must be a class, got {target!r}."
            raise TypeError(msg)

        if strategy in (Strategy.FACTORY, Strategy.FACTORY_WITH_CONTAINER) and not callable(target):
            msg = f"`{strategy.value}` of {provider.token!r} must be callable, got {target!r}."
            raise TypeError(msg)

        if provider.params and strategy in (Strategy.VALUE, Strategy.FACTORY_WITH_CONTAINER):
            msg = f"`params` cannot be combined with `{strategy.value}` (token {provider.token!r})."
            raise ValueError(msg)

        scope = self._default_scope if provider.scope is None else _coerce_scope(provider.scope, provider.token)

        return Registration(
            descriptor=descriptor,
            strategy=strategy,
            target=target,
            params=provider.params,
            scope=scope,
        )


def _as_provider(descriptor: Descriptor) -> Provider:
    if isinstance(descriptor, Provider):
        return descriptor

    if isinstance(descriptor, Mapping):
        unknown = set(descriptor) - _PROVIDER_FIELDS
        if unknown:
            msg = f"Unknown provider keys: {', '.join(sorted(map(str, unknown)))}"
            raise ValueError(msg)
        if "token" not in descriptor:
            msg = "Provider mapping must contain a `token`."
            raise ValueError(msg)
        return Provider(**descriptor)

    msg = f"Expected a Provider or a mapping, got {type(descriptor).__name__}"
    raise TypeError(msg)


def _token_of(descriptor: Descriptor) -> Any:
    if isinstance(descriptor, Provider):
        return descriptor.token
    return descriptor["token"]


def _strategy_of(provider: Provider) -> Strategy:
    chosen = []
    for strategy in Strategy:
        unset = MISSING if strategy is Strategy.VALUE else None
        if getattr(provider, strategy.value) is not unset:
            chosen.append(strategy)

    if not chosen:
        msg = f"Provider for {provider.token!r} needs one of: {', '.join(s.value for s in Strategy)}."
        raise ValueError(msg)

    if len(chosen) > 1:
        msg = f"Provide exactly one of {', '.join(s.value for s in chosen)} for {provider.token!r}, not several."
        raise ValueError(msg)

    return chosen[0]


def _coerce_scope(scope: Scope | str, token: Any) -> Scope:
    if isinstance(scope, Scope):
        return scope
    try:
        return Scope(scope)
    except ValueError:
        where = "" if token is None else f" for {token!r}"
        msg = f"Unknown scope {scope!r}{where}; expected one of: {', '.join(s.value for s in Scope)}."
        raise ValueError(msg) from None
