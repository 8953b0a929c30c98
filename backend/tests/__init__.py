# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test suite for the MCP hub.

Structure:
- unit/: Registry, cache, executor, handlers, config loading
- workflow/: Workflow engine runs
- test_api.py: HTTP routes
"""
