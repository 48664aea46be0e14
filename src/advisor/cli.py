"""Advisor orchestrator command-line interface.

Talk to the agents, inspect providers and run diagnostics from a shell.

Environment Variables:
    See ``advisor.config`` for the full list. A local ``.env`` file is
    loaded automatically.

Example Usage:
    $ advisor ask "How big is the AI market?"
    $ advisor chat                           # Interactive session
    $ advisor agents                         # List agents
    $ advisor providers                      # Provider availability
    $ advisor providers --test groq          # Run a test completion
    $ advisor diagnostics                    # Full system report
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from .app import build_orchestrator
from .config import AdvisorSettings, configure_logging
from .exceptions import AdvisorError, InvalidMessageError
from .orchestrator import AgentOrchestrator

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"exit", "quit", ":q"}


def _print_reply(reply) -> None:
    source = reply.metadata.get("source")
    provider = reply.metadata.get("provider_id") or "-"
    print(f"\n[{reply.agent_id}] ({source}, provider={provider}, confidence={reply.confidence})")
    print(reply.content)
    tools = reply.metadata.get("tools_used") or []
    if tools:
        print(f"\nTools used: {', '.join(tools)}")


async def cmd_ask(orchestrator: AgentOrchestrator, args: argparse.Namespace) -> int:
    try:
        reply = await orchestrator.process_message(args.message, session_id=args.session)
    except InvalidMessageError as e:
        print(f"[Advisor] {e}", file=sys.stderr)
        return 2
    _print_reply(reply)
    return 0


async def cmd_chat(orchestrator: AgentOrchestrator, args: argparse.Namespace) -> int:
    session_id: Optional[str] = args.session
    print("Advisor chat. Type 'exit' to quit.")

    while True:
        try:
            text = await asyncio.to_thread(input, "\n> ")
        except EOFError:
            break
        if text.strip().lower() in EXIT_COMMANDS:
            break
        if not text.strip():
            continue

        try:
            reply = await orchestrator.process_message(text, session_id=session_id)
        except InvalidMessageError as e:
            print(f"[Advisor] {e}")
            continue
        session_id = reply.metadata.get("session_id", session_id)
        _print_reply(reply)

    return 0


async def cmd_agents(orchestrator: AgentOrchestrator, args: argparse.Namespace) -> int:
    agents = orchestrator.get_agent_list()
    print(f"{'ID':<22} {'Name':<28} {'Status':<12} {'Priority':<8}")
    print("-" * 74)
    for agent in agents:
        print(
            f"{agent['id']:<22} {agent['name']:<28} "
            f"{agent['status']:<12} {agent['priority']:<8}"
        )
    return 0


async def cmd_providers(orchestrator: AgentOrchestrator, args: argparse.Namespace) -> int:
    if args.test:
        result = await orchestrator.test_llm_provider(args.test)
        if result.success:
            print(f"✓ {result.provider_id} answered in {result.latency_ms}ms using {result.model}")
            print(f"  {result.sample}")
            return 0
        print(f"✗ {result.provider_id} failed: {result.error}")
        return 1

    statuses = await orchestrator.get_llm_providers()
    if not statuses:
        print("No LLM providers configured - agents will use fallback replies")
        return 0

    print(f"{'Provider':<14} {'Kind':<8} {'Available':<10} {'Latency':<10} Models")
    print("-" * 74)
    for status in statuses:
        latency = f"{status.latency_ms}ms" if status.latency_ms is not None else "-"
        mark = "yes" if status.available else "no"
        print(
            f"{status.id:<14} {status.kind.value:<8} {mark:<10} {latency:<10} "
            f"{', '.join(status.models[:3])}"
        )
        if status.error:
            print(f"{'':<14} error: {status.error}")
    return 0


async def cmd_diagnostics(orchestrator: AgentOrchestrator, args: argparse.Namespace) -> int:
    report = await orchestrator.perform_system_diagnostics()
    print(json.dumps(report, indent=2, default=str))
    return 0 if report["status"] == "healthy" else 1


COMMANDS = {
    "ask": cmd_ask,
    "chat": cmd_chat,
    "agents": cmd_agents,
    "providers": cmd_providers,
    "diagnostics": cmd_diagnostics,
}


async def run(args: argparse.Namespace) -> int:
    try:
        settings = AdvisorSettings.from_env()
        configure_logging(args.log_level or settings.log_level)
        orchestrator = build_orchestrator(settings)
    except AdvisorError as e:
        print(f"[Advisor] Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        return await COMMANDS[args.command](orchestrator, args)
    finally:
        await orchestrator.shutdown()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="advisor",
        description="Multi-agent business advisor with LLM provider failover",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  advisor ask "What is a SaaS company with $5M revenue worth?"
  advisor chat --session my-session
  advisor providers --test ollama
  advisor diagnostics
        """
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        help="Logging level (overrides ADVISOR_LOG_LEVEL)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    ask = subparsers.add_parser("ask", help="Send a single message")
    ask.add_argument("message", help="Message text")
    ask.add_argument("--session", metavar="ID", help="Continue an existing session")

    chat = subparsers.add_parser("chat", help="Interactive conversation")
    chat.add_argument("--session", metavar="ID", help="Session id to use")

    subparsers.add_parser("agents", help="List registered agents")

    providers = subparsers.add_parser("providers", help="Show provider availability")
    providers.add_argument(
        "--test",
        metavar="PROVIDER",
        help="Run a short test completion against PROVIDER"
    )

    subparsers.add_parser("diagnostics", help="Print a system diagnostics report")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
