"""
llmagency CLI entry point.

Provides command-line access to chat, stored threads and image generation.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from llmagency import __version__
from llmagency.config.logging import get_logger, setup_logging
from llmagency.config.settings import Settings, load_settings


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="llmagency",
        description="Tool-calling chat client for the LLM agency service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"llmagency {__version__}",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: .env in current directory)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level from config",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "config",
        help="Show current configuration",
    )

    chat_parser = subparsers.add_parser(
        "chat",
        help="Ask the model a question (tools from TOOL_MCP_COMMAND are offered if set)",
    )
    chat_parser.add_argument(
        "question",
        help='Question to ask, e.g. "What is 2+2?"',
    )
    chat_parser.add_argument(
        "--system",
        default=None,
        help="System prompt to send before the question",
    )
    chat_parser.add_argument(
        "--model",
        default=None,
        help="Model name (default: LLM_MODEL from config)",
    )
    chat_parser.add_argument(
        "--kind",
        default=None,
        help="Expected answer kind, e.g. 'str' (agency backend only)",
    )
    chat_parser.add_argument(
        "--thread",
        default=None,
        help="Continue a stored thread (agency backend only)",
    )

    history_parser = subparsers.add_parser(
        "history",
        help="Print the messages of a stored thread",
    )
    history_parser.add_argument(
        "thread",
        help="Thread id",
    )
    history_parser.add_argument(
        "--model",
        default=None,
        help="Model whose endpoint serves the thread (default: LLM_MODEL from config)",
    )

    image_parser = subparsers.add_parser(
        "image",
        help="Generate an image and print its URL",
    )
    image_parser.add_argument(
        "prompt",
        help="Description of the image",
    )
    image_parser.add_argument(
        "--model",
        default="dalle-3",
        help="Image model: dalle* or flux* (default: dalle-3)",
    )

    return parser


def cmd_config(settings: Settings) -> int:
    """Show current configuration. Secrets are reported as set/not set only."""
    print("\n=== llmagency Configuration ===\n")
    print(f"Environment: {settings.environment}")
    print(f"Log Level: {settings.log_level}")
    print(f"Log File: {settings.log_file or 'None (console only)'}")
    print(f"\nLLM Backend: {settings.llm.backend}")
    print(f"LLM Model: {settings.llm.model}")
    print(f"LLM Max Tool Rounds: {settings.llm.max_tool_rounds or 'unlimited'}")
    print(f"LLM API Key: {'Set' if settings.llm.api_key else 'Not set'}")
    print(f"\nAgency URL: {settings.agency.base_url()}")
    print(f"Agency URL Path: {settings.agency.url_path or '(none)'}")
    print(f"Agency Key: {'Set' if settings.agency.key else 'Not set'}")
    print(f"\nMemory URL: {settings.memory.base_url()}")
    print(f"Memory Token: {'Set' if settings.memory.token else 'Not set'}")
    print(f"\nMCP Server: {settings.tools.mcp_command or 'None'} {' '.join(settings.tools.mcp_args)}")

    return 0


async def _ask(args, orchestrator, tools) -> int:
    from llmagency.llm import system_message, user_message

    history = await orchestrator.history(args.thread) if args.thread else []
    result = await orchestrator.get(
        messages=[
            system_message(args.system) if args.system else None,
            *history,
            user_message(args.question),
        ],
        tools=tools,
        kind=args.kind,
    )

    print(result.answer.content)
    if result.thread:
        print(f"\nThread: {result.thread}")
    if result.usage:
        print(f"Usage: {result.usage}")
    print(f"Turns: {result.turns}")
    return 0


async def cmd_chat(args, settings: Settings) -> int:
    """Send one question through the orchestrator and print the answer."""
    logger = get_logger(__name__)

    from llmagency.errors import LLMError
    from llmagency.llm import ChatOrchestrator

    try:
        orchestrator = ChatOrchestrator.from_settings(settings, model=args.model)
    except (LLMError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        async with orchestrator.transport:
            if settings.tools.mcp_command:
                from llmagency.tools.mcp import McpToolset

                async with McpToolset(settings.tools.mcp_command, settings.tools.mcp_args) as toolset:
                    tools = await toolset.tools()
                    logger.info(f"Offering {len(tools)} MCP tool(s)")
                    return await _ask(args, orchestrator, tools)

            return await _ask(args, orchestrator, [])
    except LLMError as e:
        print(f"\nLLM error: {e}", file=sys.stderr)
        return 1


async def cmd_history(args, settings: Settings) -> int:
    """Print the messages of a stored thread."""
    from llmagency.errors import LLMError
    from llmagency.llm import ChatOrchestrator

    try:
        orchestrator = ChatOrchestrator.from_settings(settings, model=args.model)
        async with orchestrator.transport:
            messages = await orchestrator.history(args.thread)
    except (LLMError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for message in messages:
        print(f"[{message.role}] {message.content}")
    return 0


async def cmd_image(args, settings: Settings) -> int:
    """Generate an image and print its URL."""
    from llmagency.errors import LLMError
    from llmagency.image import ImageClient

    try:
        async with ImageClient.from_settings(settings.agency, args.model) as client:
            image = await client.generate(args.prompt)
    except (LLMError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(image.url)
    return 0


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    try:
        settings = load_settings(env_file=args.env_file)
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    if args.log_level:
        settings.log_level = args.log_level

    setup_logging(settings)

    if args.command == "config":
        return cmd_config(settings)
    elif args.command == "chat":
        return asyncio.run(cmd_chat(args, settings))
    elif args.command == "history":
        return asyncio.run(cmd_history(args, settings))
    elif args.command == "image":
        return asyncio.run(cmd_image(args, settings))
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
