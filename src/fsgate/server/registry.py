from typing import Any, Awaitable, Callable, Mapping

from fsgate.protocol.base import Result

# Handlers take the request params and may be sync or async.
Handler = Callable[
    [Mapping[str, Any]],
    Result | Mapping[str, Any] | Awaitable[Result | Mapping[str, Any]],
]


class RegistrySealedError(RuntimeError):
    """Raised when registering after the registry has been sealed."""


class MethodRegistry:
    """Fixed mapping from `<service>.<method>` names to handlers.

    Services register during startup; `seal()` is called before any request
    is served and the set of methods never changes afterwards.
    """

    def __init__(self):
        self._handlers: dict[str, Handler] = {}
        self._sealed = False

    @staticmethod
    def qualified_name(service: str, method: str) -> str:
        return f"{service}.{method}"

    def register(self, service: str, method: str, handler: Handler) -> None:
        """Bind a handler to `service.method`.

        Raises:
            RegistrySealedError: If the registry is already sealed.
            ValueError: If the name is already registered.
        """
        if self._sealed:
            raise RegistrySealedError(
                f"Cannot register {service}.{method}: registry is sealed"
            )
        name = self.qualified_name(service, method)
        if name in self._handlers:
            raise ValueError(f"Method already registered: {name}")
        self._handlers[name] = handler

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def get(self, name: str) -> Handler | None:
        return self._handlers.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def methods(self) -> list[str]:
        return list(self._handlers.keys())
