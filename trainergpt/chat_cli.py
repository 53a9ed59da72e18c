#!/usr/bin/env python3
"""Interactive chat with the TrainerGPT coach."""

from __future__ import annotations

import argparse
import logging

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from .cache import build_cache
from .config import CoachConfig
from .shell.chat import CoachChat, build_coach_loop
from .store import build_store
from .store.seed import DEMO_USER_ID
from .workers.scheduler import run_scheduler

console = Console()


def _print_info(config: CoachConfig, user_id: str, chat: CoachChat) -> None:
    table = Table(title="Session Information")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("User", user_id)
    table.add_row("Model", config.model)
    table.add_row("Store", config.store)
    table.add_row("Max steps", str(config.max_steps))
    table.add_row("Advanced coaching", "on" if config.advanced_coaching else "off")
    table.add_row("Workout timer", "on" if config.workout_timer else "off")
    table.add_row("Messages in history", str(len(chat.history)))
    console.print(table)
    console.print()


def chat_session(config: CoachConfig, user_id: str) -> None:
    store = build_store(config)
    cache = build_cache(config)
    run_scheduler(store, cache, user_ids=[user_id])
    chat = CoachChat(build_coach_loop(config, store, user_id, cache=cache))

    console.print(Panel(f"Chatting as: {user_id}", style="bold green"))
    console.print("Commands: 'exit' to quit, 'clear' to clear screen, 'reset' to start over, "
                  "'info' for session info\n")

    while True:
        try:
            message = Prompt.ask("[green]You[/green]")
            command = message.strip().lower()

            if command == "exit":
                break
            if command == "clear":
                console.clear()
                continue
            if command == "reset":
                chat.reset()
                console.print("[dim]Conversation cleared.[/dim]\n")
                continue
            if command == "info":
                _print_info(config, user_id, chat)
                continue
            if not command:
                continue

            with console.status("[dim]Thinking...[/dim]", spinner="dots"):
                result = chat.send(message)

            if result.text:
                console.print(f"\n[blue]Coach:[/blue] {result.text}")
            else:
                console.print("\n[yellow]Coach:[/yellow] [dim](No response)[/dim]")

            if result.tool_calls:
                names = ", ".join(c.tool_name for c in result.tool_calls)
                console.print(f"[dim]Tools used: {names}[/dim]")
            if result.finish_reason == "max_steps":
                console.print(f"[dim]Stopped at the {config.max_steps}-step limit.[/dim]")
            console.print()

        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted. Type 'exit' to quit.[/yellow]\n")
        except Exception as e:
            console.print(Panel(f"{e}", title="Error", style="red"))


def main() -> None:
    parser = argparse.ArgumentParser(description="Chat with the TrainerGPT coach")
    parser.add_argument("--user", default=DEMO_USER_ID, help="User id to chat as")
    parser.add_argument("--verbose", action="store_true", help="Log tool calls")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = CoachConfig.from_env()
    console.print(Panel("TrainerGPT Interactive Chat", style="bold magenta"))
    chat_session(config, args.user)
    console.print("\n[bold]Goodbye![/bold]")


if __name__ == "__main__":
    main()
