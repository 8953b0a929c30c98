# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Connector dispatch strategies, one per ConnectorType.
"""
from typing import Dict, Optional

import httpx

from .base import ConnectorHandler
from .api import ApiHandler
from .cli import CliHandler
from .file import FileHandler
from .database import DatabaseHandler
from .webhook import WebhookHandler
from ..core.config import Config
from ..models import ConnectorType


HANDLER_CLASSES = {
    ConnectorType.API: ApiHandler,
    ConnectorType.CLI: CliHandler,
    ConnectorType.FILE: FileHandler,
    ConnectorType.DATABASE: DatabaseHandler,
    ConnectorType.WEBHOOK: WebhookHandler,
}

HTTP_HANDLERS = (ApiHandler, WebhookHandler)


def build_handlers(
    config: Config,
    http_client: Optional[httpx.AsyncClient] = None
) -> Dict[ConnectorType, ConnectorHandler]:
    """
    Instantiate every handler.

    Args:
        config: Hub configuration (default timeouts)
        http_client: Shared client for API and webhook handlers;
            each creates its own when omitted

    Returns:
        Map of connector type to handler
    """
    handlers: Dict[ConnectorType, ConnectorHandler] = {}
    for connector_type, handler_class in HANDLER_CLASSES.items():
        if handler_class in HTTP_HANDLERS:
            handlers[connector_type] = handler_class(config, client=http_client)
        else:
            handlers[connector_type] = handler_class(config)
    return handlers


__all__ = [
    "ConnectorHandler",
    "ApiHandler",
    "CliHandler",
    "FileHandler",
    "DatabaseHandler",
    "WebhookHandler",
    "HANDLER_CLASSES",
    "build_handlers",
]
