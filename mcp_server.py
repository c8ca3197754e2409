#!/usr/bin/env python3
"""
Mbox Splitter MCP Server

MCP server that lets Cursor and other MCP clients split mbox archives into .eml files.
"""

import asyncio
import sys
from functools import partial
from typing import Any

from mcp.server.models import InitializationOptions
from mcp.server import Server, NotificationOptions
from mcp.server.stdio import stdio_server
from mcp import types

from mboxsplit.config import NAMING_STYLES, ConverterConfig
from mboxsplit.converter import MboxToEmlConverter
from mboxsplit.errors import MboxSplitError

# stdout carries the MCP protocol, so all progress goes to stderr
log_to_stderr = partial(print, file=sys.stderr)

# Conversions touch the same files; run them one at a time
conversion_lock = asyncio.Lock()

# Create MCP server
server = Server("mbox-splitter")


def text_response(text: str) -> list[types.TextContent]:
    return [types.TextContent(type="text", text=text)]


def format_summary(summary) -> str:
    """Builds the markdown reply for a finished conversion."""
    text = f"**Split complete:** `{summary.mbox_path}` → `{summary.output_dir}`\n\n"
    text += f"- Messages found: {summary.boundary_count}\n"
    text += f"- EML files written: {summary.extracted_count}\n"
    text += f"- Failed to write: {summary.failed_count}\n"

    if summary.kept_count is not None:
        text += f"- Messages left in the mbox: {summary.kept_count}\n"

    for failure in summary.failed:
        text += f"  - `{failure.filename}`: {failure.error}\n"

    if summary.rewrite_error:
        text += f"\n⚠️ **MBOX rewrite failed:** {summary.rewrite_error}\n"
        text += "The extracted messages are still in the mbox file.\n"

    return text


def format_inspection(result, limit: int) -> str:
    """Builds the markdown reply for an inspected archive."""
    text = f"**Messages found:** {result.boundary_count}\n\n"

    for i, segment in enumerate(result.segments[:limit], 1):
        text += f"{i}. **{segment.subject}**\n"
        text += f"   Date: {segment.sent_date}\n"
        text += f"   Lines: {len(segment.body_lines)}\n"

    remaining = len(result.segments) - limit
    if remaining > 0:
        text += f"\n…and {remaining} more.\n"

    return text


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available MCP tools."""
    return [
        types.Tool(
            name="split_mbox",
            description="Split an .mbox archive into one .eml file per message, optionally removing the saved messages from the archive.",
            inputSchema={
                "type": "object",
                "properties": {
                    "mbox_path": {
                        "type": "string",
                        "description": "Path to the .mbox file"
                    },
                    "output_dir": {
                        "type": "string",
                        "description": "Directory to write the .eml files to (created if missing)"
                    },
                    "remove_extracted": {
                        "type": "boolean",
                        "description": "Rewrite the mbox so it only keeps messages that failed to save (default: false)",
                        "default": False
                    },
                    "naming": {
                        "type": "string",
                        "enum": list(NAMING_STYLES),
                        "description": "Filename style: 'metadata' (date_subject_n.eml) or 'index' (email_n.eml)",
                        "default": "metadata"
                    }
                },
                "required": ["mbox_path", "output_dir"]
            }
        ),
        types.Tool(
            name="inspect_mbox",
            description="List the messages in an .mbox archive (subject, date, size) without writing anything.",
            inputSchema={
                "type": "object",
                "properties": {
                    "mbox_path": {
                        "type": "string",
                        "description": "Path to the .mbox file"
                    },
                    "limit": {
                        "type": "integer",
                        "description": "Maximum number of messages to list (default: 20)",
                        "default": 20
                    }
                },
                "required": ["mbox_path"]
            }
        )
    ]


@server.call_tool()
async def handle_call_tool(
    name: str,
    arguments: dict[str, Any] | None
) -> list[types.TextContent | types.ImageContent | types.EmbeddedResource]:
    """Handle tool execution."""
    arguments = arguments or {}

    if name == "split_mbox":
        mbox_path = arguments.get("mbox_path", "")
        output_dir = arguments.get("output_dir", "")

        if not mbox_path or not output_dir:
            return text_response("❌ Error: 'mbox_path' and 'output_dir' parameters are required")

        try:
            config = ConverterConfig(
                remove_extracted=bool(arguments.get("remove_extracted", False)),
                naming=arguments.get("naming", "metadata")
            )
        except ValueError as e:
            return text_response(f"❌ Error: {e}")

        converter = MboxToEmlConverter(config, log=log_to_stderr, warn=log_to_stderr)

        try:
            async with conversion_lock:
                summary = await asyncio.to_thread(converter.convert, mbox_path, output_dir)
        except MboxSplitError as e:
            return text_response(f"❌ Error splitting mbox: {e}")

        return text_response(format_summary(summary))

    elif name == "inspect_mbox":
        mbox_path = arguments.get("mbox_path", "")
        if not mbox_path:
            return text_response("❌ Error: 'mbox_path' parameter is required")

        try:
            limit = int(arguments.get("limit", 20))
        except (TypeError, ValueError):
            limit = -1
        if limit < 0:
            return text_response("❌ Error: 'limit' must be a non-negative integer")

        converter = MboxToEmlConverter(log=log_to_stderr, warn=log_to_stderr)

        try:
            async with conversion_lock:
                result = await asyncio.to_thread(converter.inspect, mbox_path)
        except MboxSplitError as e:
            return text_response(f"❌ Error reading mbox: {e}")

        return text_response(format_inspection(result, limit))

    else:
        return text_response(f"❌ Unknown tool: {name}")


async def main():
    """Run the MCP server."""
    print("✅ Mbox splitter MCP server starting", file=sys.stderr)

    # Start stdio server
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name="mbox-splitter",
                server_version="1.0.0",
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={}
                )
            )
        )


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
