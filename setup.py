# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for the Neon MCP Hub
"""

from setuptools import setup, find_packages

setup(
    name="neon-mcp-hub",
    version="0.1.0",
    description="Connector execution and workflow orchestration for external tool integration",
    author="Neon MCP Hub maintainers",
    package_dir={"": "backend"},
    packages=find_packages("backend", exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "httpx>=0.24.0",
        "aiofiles>=23.0.0",
        "PyYAML>=6.0",
        "SQLAlchemy>=2.0.0",
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "neon-mcp-hub=mcp_hub.main:main",
        ]
    },
)
