# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Database connector - SQL query and schema introspection via SQLAlchemy.

Response shapes are fixed:
    query  -> {rows, rowCount, query}
    schema -> {tables, version}
"""
import asyncio
from typing import Any, Dict

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError

from .base import ConnectorHandler
from ..core.errors import ConnectorTimeoutError, DispatchError
from ..models import Connector, ConnectorType, InvocationContext, MCPResponse


def run_query(connection_string: str, sql: str, parameters: Dict[str, Any]) -> Dict[str, Any]:
    engine = create_engine(connection_string)
    try:
        with engine.begin() as conn:
            result = conn.execute(text(sql), parameters)
            if result.returns_rows:
                rows = [dict(row._mapping) for row in result]
                row_count = len(rows)
            else:
                rows = []
                row_count = result.rowcount
        return {"rows": rows, "rowCount": row_count, "query": sql}
    finally:
        engine.dispose()


def read_schema(connection_string: str) -> Dict[str, Any]:
    engine = create_engine(connection_string)
    try:
        with engine.connect() as conn:
            tables = inspect(conn).get_table_names()
            version_info = conn.dialect.server_version_info or ()
        return {
            "tables": tables,
            "version": ".".join(str(part) for part in version_info),
        }
    finally:
        engine.dispose()


class DatabaseHandler(ConnectorHandler):
    """SQL database connector"""

    connector_type = ConnectorType.DATABASE

    async def handle(
        self,
        connector: Connector,
        action: str,
        params: Dict[str, Any],
        context: InvocationContext
    ) -> MCPResponse:
        connection_string = connector.config.connection_string

        if action == "query":
            sql = params.get("sql") or ""
            if not sql:
                raise DispatchError("Database query requires 'sql'")
            call = (run_query, connection_string, sql, params.get("parameters") or {})
        elif action == "schema":
            call = (read_schema, connection_string)
        else:
            raise DispatchError(f"Unsupported database action: {action}")

        if not connection_string:
            raise DispatchError(f"Connector '{connector.id}' has no connection string configured")

        timeout_ms = self.timeout_ms(connector)
        try:
            # Drivers are blocking; the worker thread is abandoned on timeout
            data = await asyncio.wait_for(
                asyncio.to_thread(*call),
                timeout=timeout_ms / 1000.0
            )
        except asyncio.TimeoutError:
            raise ConnectorTimeoutError(f"Database {action} timed out after {timeout_ms}ms", timeout_ms)
        except SQLAlchemyError as e:
            raise DispatchError(f"Database operation failed: {e}")

        return MCPResponse.ok(data)
