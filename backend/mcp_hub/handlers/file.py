# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
File connector - read, write, append, exists, stat.

The target is `params.path` if given, else the connector's filePath.
Relative paths resolve against the invocation's workspace root.
"""
import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

import aiofiles
import aiofiles.os

from .base import ConnectorHandler
from ..core.errors import ConnectorTimeoutError, DispatchError
from ..models import Connector, ConnectorType, InvocationContext, MCPResponse

SUPPORTED_ACTIONS = ("read", "write", "append", "exists", "stat")


class FileHandler(ConnectorHandler):
    """Filesystem connector"""

    connector_type = ConnectorType.FILE

    def resolve_path(self, connector: Connector, params: Dict[str, Any], context: InvocationContext) -> Path:
        raw = params.get("path") or connector.config.file_path
        if not raw:
            raise DispatchError(f"Connector '{connector.id}' has no file path configured")

        path = Path(str(raw)).expanduser()
        if not path.is_absolute() and context.workspace_root:
            path = Path(context.workspace_root) / path
        return path

    async def handle(
        self,
        connector: Connector,
        action: str,
        params: Dict[str, Any],
        context: InvocationContext
    ) -> MCPResponse:
        if action not in SUPPORTED_ACTIONS:
            raise DispatchError(f"Unsupported file action: {action}")

        path = self.resolve_path(connector, params, context)
        timeout_ms = self.timeout_ms(connector)

        try:
            result = await asyncio.wait_for(
                self._run(action, path, params),
                timeout=timeout_ms / 1000.0
            )
        except asyncio.TimeoutError:
            raise ConnectorTimeoutError(f"File {action} timed out after {timeout_ms}ms", timeout_ms)
        except OSError as e:
            raise DispatchError(f"File operation failed: {e}", details={"path": str(path)})

        return MCPResponse.ok(result, metadata={"path": str(path)})

    async def _run(self, action: str, path: Path, params: Dict[str, Any]) -> Dict[str, Any]:
        if action == "read":
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return {"content": await f.read()}

        if action in ("write", "append"):
            content = params.get("content")
            if content is None:
                raise DispatchError(f"File {action} requires 'content'")
            mode = "w" if action == "write" else "a"
            async with aiofiles.open(path, mode, encoding="utf-8") as f:
                await f.write(str(content))
            return {"success": True}

        if action == "exists":
            return {"exists": await aiofiles.os.path.exists(path)}

        stats = await aiofiles.os.stat(path)
        return {
            "size": stats.st_size,
            "mtime": datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc).isoformat(),
            "isFile": await aiofiles.os.path.isfile(path),
            "isDirectory": await aiofiles.os.path.isdir(path),
        }
