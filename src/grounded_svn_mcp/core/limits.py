from __future__ import annotations

# Ceilings for resource payloads handed to MCP clients.
MAX_LINES_TEXT = 2_000
MAX_TREE_ENTRIES = 5_000
