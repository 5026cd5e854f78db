"""
Command-line interface for GigaChat-Agent.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import structlog
import uvicorn

from .config import Settings, get_settings

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="gigachat-agent",
        description="GigaChat-Agent - conversational client for GigaChat with local tools",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    chat_parser = subparsers.add_parser("chat", help="Start an interactive chat session")
    chat_parser.add_argument("--temperature", type=float, default=None, help="Initial temperature (0.0-2.0)")

    serve_parser = subparsers.add_parser("serve-tools", help="Start the tool server")
    serve_parser.add_argument("--host", default=None, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind to")

    config_parser = subparsers.add_parser("config", help="Show configuration")
    config_parser.add_argument("--check", action="store_true", help="Check configuration validity")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")

    if args.command == "chat":
        asyncio.run(run_chat(settings, args.temperature))
    elif args.command == "serve-tools":
        run_tool_server(args.host or settings.tool_server_host, args.port or settings.tool_server_port)
    elif args.command == "config":
        show_config(settings, args.check)
    else:
        parser.print_help()


async def run_chat(settings: Settings, temperature: float | None = None) -> None:
    """Build the session and run the interactive shell."""
    from .agent import SessionOrchestrator
    from .config import validate_temperature
    from .errors import PromptFileError
    from .llm import create_http_client, create_llm
    from .shell import ChatShell, read_prompt_file
    from .tools import create_default_registry

    if not settings.has_credentials:
        logger.warning("GIGACHAT_CLIENT_ID / GIGACHAT_CLIENT_SECRET are not set, completion calls will fail")

    if temperature is not None:
        try:
            validate_temperature(temperature)
        except ValueError as e:
            print(f"Error: {e}")
            return

    config = settings.get_gigachat_config()
    try:
        http_client = create_http_client(config.ca_bundle_path, config.connect_timeout, config.request_timeout)
    except (OSError, ValueError) as e:
        print(f"Error: could not load trust anchor: {e}")
        return

    async with http_client:
        llm = create_llm(http_client, config=config)
        registry = await create_default_registry(settings, http_client)
        orchestrator = SessionOrchestrator(
            llm,
            tool_registry=registry,
            max_messages=settings.max_context_messages,
        )

        if settings.system_prompt_file.is_file():
            try:
                prompt = read_prompt_file(settings.system_prompt_file.parent, settings.system_prompt_file.name)
                orchestrator.set_system_prompt(prompt)
            except PromptFileError as e:
                logger.warning("Could not load system prompt", error=str(e))

        shell = ChatShell(orchestrator, settings, temperature)
        await shell.run()


def run_tool_server(host: str, port: int) -> None:
    """Run the FastAPI tool server."""
    logger.info("Starting tool server", host=host, port=port)

    uvicorn.run(
        "gigachat_agent.server.app:create_app",
        host=host,
        port=port,
        factory=True,
        log_level="info",
    )


def show_config(settings: Settings, check: bool) -> None:
    """Show current configuration."""

    def mask(value: str) -> str:
        if not value:
            return "(not set)"
        return value[:4] + "..." + value[-4:] if len(value) > 10 else "****"

    print("\n=== GigaChat-Agent Configuration ===\n")

    print("GigaChat:")
    print(f"  Client ID: {mask(settings.gigachat_client_id)}")
    print(f"  Client Secret: {mask(settings.gigachat_client_secret)}")
    print(f"  Scope: {settings.gigachat_scope}")
    print(f"  Token URL: {settings.gigachat_token_url}")
    print(f"  API URL: {settings.gigachat_api_url}")
    print(f"  Model: {settings.gigachat_model}")
    print(f"  CA bundle: {settings.ca_bundle_path or '(system default)'}")

    print("\nConversation:")
    print(f"  Temperature: {settings.temperature}")
    print(f"  Max tokens: {settings.max_tokens}")
    print(f"  Max context messages: {settings.max_context_messages}")
    print(f"  System prompt file: {settings.system_prompt_file}")

    print("\nTools:")
    print(f"  Tool server: {settings.tool_server_url}")
    print(f"  Tool timeout: {settings.tool_timeout_seconds}s")
    print(f"  Discover remote tools: {settings.discover_remote_tools}")

    if check:
        problems = []
        if not settings.has_credentials:
            problems.append("GIGACHAT_CLIENT_ID and GIGACHAT_CLIENT_SECRET must be set")
        if settings.ca_bundle_path and not Path(settings.ca_bundle_path).is_file():
            problems.append(f"CA bundle not found: {settings.ca_bundle_path}")

        print()
        if problems:
            for problem in problems:
                print(f"  [!] {problem}")
            sys.exit(1)
        print("  Configuration OK")


if __name__ == "__main__":
    main()
