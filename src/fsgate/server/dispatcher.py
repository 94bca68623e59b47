"""Routes service requests to registered handlers.

Handlers raise `RpcError` subclasses for expected failures; the dispatcher is
the one place those exceptions become protocol `Error` values.
"""

import inspect
import logging

from fsgate.protocol.base import (
    INTERNAL_ERROR,
    METHOD_NOT_FOUND,
    Error,
    Result,
    ServiceRequest,
)
from fsgate.protocol.errors import RpcError
from fsgate.server.registry import MethodRegistry

logger = logging.getLogger(__name__)


class Dispatcher:
    def __init__(self, registry: MethodRegistry):
        self.registry = registry

    def has_method(self, method: str) -> bool:
        return method in self.registry

    async def dispatch(self, request: ServiceRequest) -> Result | Error:
        """Invoke the handler for `request.method` and wrap its outcome.

        Args:
            request: Parsed request with method name and named params.

        Returns:
            Result: The handler's return value, wrapped if it was a mapping.
            Error: METHOD_NOT_FOUND for unknown methods, the domain error's
                code/message/data if the handler raised `RpcError`, or
                INTERNAL_ERROR for anything else.
        """
        method = request.method
        handler = self.registry.get(method)
        if handler is None:
            return Error(code=METHOD_NOT_FOUND, message=f"Unknown method: {method}")

        try:
            outcome = handler(request.params)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except RpcError as e:
            logger.info("%s failed with %s: %s", method, e.code, e.message)
            return e.to_error()
        except Exception as e:
            logger.exception("Unexpected error in handler for %s", method)
            return Error(code=INTERNAL_ERROR, message=f"Handler error: {e}")

        if isinstance(outcome, Result):
            return outcome
        if outcome is None:
            return Result()
        return Result.model_validate(dict(outcome))
