# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Connector Executor - single entry point for running connector actions.

    execute(connector_id, action, params, context) -> MCPResponse

Order of operations:
    1. look up connector            (NotFound)
    2. reject disabled connectors   (Disabled)
    3. serve from cache if fresh
    4. start the clock
    5. dispatch to the type handler
    6. stamp duration
    7. cache successful responses
    8. return the envelope

Nothing raised by a handler escapes: every failure becomes a failed envelope.
"""
import time
from typing import Any, Dict, Optional

from .cache import ResponseCache
from .core.errors import DisabledError, DispatchError, HubError, NotFoundError, sanitize_error_for_user
from .core.logging import get_service_logger, log_event
from .handlers import ConnectorHandler
from .models import ConnectorType, InvocationContext, MCPResponse
from .registry import ConnectorRegistry

logger = get_service_logger("executor")


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class ConnectorExecutor:
    """Dispatches invocations to the protocol-specific handler for a connector's type"""

    def __init__(
        self,
        registry: ConnectorRegistry,
        cache: ResponseCache,
        handlers: Dict[ConnectorType, ConnectorHandler]
    ):
        missing = [t.value for t in ConnectorType if t not in handlers]
        if missing:
            raise ValueError(f"No handler registered for connector types: {', '.join(missing)}")

        self.registry = registry
        self.cache = cache
        self.handlers = handlers

    async def execute(
        self,
        connector_id: str,
        action: str,
        params: Optional[Dict[str, Any]] = None,
        context: Optional[InvocationContext] = None
    ) -> MCPResponse:
        params = params or {}
        context = context or InvocationContext()

        connector = self.registry.get(connector_id)
        if connector is None:
            return NotFoundError("Connector", connector_id).to_response()

        if not connector.enabled:
            return DisabledError("Connector", connector_id).to_response()

        cache_key = self.cache.make_key(connector_id, action, params)
        cached = self.cache.get(cache_key)
        if cached is not None:
            log_event(logger, "connector_cache_hit", "DEBUG", connector_id=connector_id, action=action)
            return cached

        started = time.perf_counter()
        log_event(
            logger, f"Executing connector {connector_id} with action {action}",
            connector_id=connector_id, action=action, connector_type=connector.type.value
        )

        try:
            handler = self.handlers[connector.type]
            response = await handler.handle(connector, action, params, context)
        except HubError as e:
            response = e.to_response()
        except Exception as e:
            logger.exception(f"Connector {connector_id} raised unexpectedly")
            response = DispatchError(
                f"Connector execution failed: {sanitize_error_for_user(e)}"
            ).to_response()

        response.duration = _elapsed_ms(started)

        if response.success:
            self.cache.put(cache_key, response)
        else:
            log_event(
                logger, f"Connector {connector_id} failed: {response.error}", "WARNING",
                connector_id=connector_id, action=action, error_type=response.error_type
            )

        return response
