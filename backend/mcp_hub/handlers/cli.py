# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
CLI connector - runs a local command as a subprocess.

Command line = connector command + action suffix:
    run      -> <command> <args>
    version  -> <command> --version
    <other>  -> <command> <other> <args>

No shell is involved; args are split with shlex. The working directory is
the invocation's workspace root.
"""
import asyncio
import os
import shlex
from typing import Any, Dict, List, Optional

from .base import ConnectorHandler
from ..core.errors import ConnectorTimeoutError, DispatchError
from ..core.logging import get_service_logger
from ..models import Connector, ConnectorType, InvocationContext, MCPResponse

logger = get_service_logger("handlers.cli")

# Seconds to wait for pipes to close after killing a timed-out process
DRAIN_GRACE_SECONDS = 1.0


def split_args(args: Any) -> List[str]:
    if args is None or args == "":
        return []
    if isinstance(args, (list, tuple)):
        return [str(a) for a in args]
    return shlex.split(str(args))


def build_command(base: str, action: str, params: Dict[str, Any]) -> List[str]:
    argv = shlex.split(base)
    args = split_args(params.get("args"))

    if action == "run":
        return argv + args
    if action == "version":
        return argv + ["--version"]
    return argv + [action] + args


async def _drain(stream: Optional[asyncio.StreamReader], sink: List[bytes]) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(4096)
        if not chunk:
            return
        sink.append(chunk)


def _decode(chunks: List[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace").strip()


class CliHandler(ConnectorHandler):
    """Command-line tool connector"""

    connector_type = ConnectorType.CLI

    def working_directory(self, context: InvocationContext) -> Optional[str]:
        root = context.workspace_root
        if not root:
            return None
        if not os.path.isdir(root):
            raise DispatchError(f"Workspace root does not exist: {root}")
        return root

    async def handle(
        self,
        connector: Connector,
        action: str,
        params: Dict[str, Any],
        context: InvocationContext
    ) -> MCPResponse:
        if not connector.config.command:
            raise DispatchError(f"Connector '{connector.id}' has no command configured")

        try:
            argv = build_command(connector.config.command, action, params)
        except ValueError as e:
            raise DispatchError(f"Invalid command line: {e}")

        timeout_ms = self.timeout_ms(connector)
        logger.info(f"Running: {' '.join(argv)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.working_directory(context)
            )
        except OSError as e:
            raise DispatchError(
                f"CLI execution failed: {e}",
                data={"stdout": "", "stderr": str(e)}
            )

        stdout: List[bytes] = []
        stderr: List[bytes] = []
        completion = asyncio.gather(
            _drain(process.stdout, stdout),
            _drain(process.stderr, stderr),
            process.wait()
        )

        try:
            # Shielded so a timeout leaves the drains running to collect partial output
            await asyncio.wait_for(asyncio.shield(completion), timeout=timeout_ms / 1000.0)
        except asyncio.TimeoutError:
            await self._terminate(process, completion)
            raise ConnectorTimeoutError(
                f"CLI execution timed out after {timeout_ms}ms",
                timeout_ms,
                data={"stdout": _decode(stdout), "stderr": _decode(stderr)}
            )

        data = {
            "stdout": _decode(stdout),
            "stderr": _decode(stderr),
            "exitCode": process.returncode,
        }

        if process.returncode != 0:
            raise DispatchError(
                f"CLI execution failed: command exited with code {process.returncode}",
                data=data
            )

        return MCPResponse.ok(data)

    async def _terminate(self, process: asyncio.subprocess.Process, completion: asyncio.Future) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass

        # Collect whatever the pipes still hold; a grandchild may keep them open
        try:
            await asyncio.wait_for(completion, timeout=DRAIN_GRACE_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(f"Process {process.pid} pipes still open after kill")
