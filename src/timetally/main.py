"""
TimeTally command line

Usage:
    timetally run                   # Count down the current list
    timetally status                # Show the current list
    timetally task add Stretch 5 --unit minutes
    timetally import tasks.xml --mode replace
    timetally --debug --console run # Verbose, human-readable logs

``run`` starts the countdown and returns when the lap completes or on
SIGINT/SIGTERM. Every other command edits the saved workspace and exits.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import NoReturn, Sequence

from timetally import __version__
from timetally.audio import PiperSpeech
from timetally.config import TallyConfig, load_config
from timetally.events import Event
from timetally.timer import ImportMode, NotificationMode, TimerState, TimeTally
from timetally.utils.logging import bind_list, get_logger, setup_logging


class TallyRunner:
    """
    Runs the countdown of the current list in the foreground.

    Prints task starts and completions, and the finish estimate on its own
    slower cadence.
    """

    def __init__(self, tally: TimeTally):
        self.tally = tally
        self.logger = get_logger("timetally.runner")
        self._done = asyncio.Event()
        self._interrupted = False

        bus = tally.bus
        bus.subscribe("task.started", self._on_task_started)
        bus.subscribe("task.completed", self._on_task_completed)
        bus.subscribe("finish.estimated", self._on_estimate)
        bus.subscribe("timer.lap_completed", self._on_lap_completed)

    def _on_task_started(self, event: Event) -> None:
        task = self.tally.engine.active_task
        if task:
            print(f"> {task.name} ({task.remaining_seconds}s)")

    def _on_task_completed(self, event: Event) -> None:
        print(f"  done: {event.payload.get('task')}")

    def _on_estimate(self, event: Event) -> None:
        print(f"  {event.payload.get('text')}")

    def _on_lap_completed(self, event: Event) -> None:
        print("All tasks completed.")
        self._done.set()

    async def run(self) -> int:
        if not self.tally.start():
            print("Nothing to run in this list.")
            return 1

        self.tally.start_estimates()
        self.logger.info("runner_started", list_name=self.tally.workspace.current_list)
        try:
            while not self._done.is_set():
                try:
                    await asyncio.wait_for(self._done.wait(), timeout=0.5)
                except asyncio.TimeoutError:
                    if self.tally.engine.state == TimerState.IDLE:
                        break
        finally:
            self.tally.shutdown()
            await self._finish_speech()
            self.logger.info("runner_stopped")
        return 0

    async def _finish_speech(self) -> None:
        speech = self.tally.dispatcher.speech
        if not isinstance(speech, PiperSpeech):
            return
        if self._interrupted:
            await speech.stop()
        else:
            await speech.drain()

    def request_shutdown(self) -> None:
        """Request graceful shutdown."""
        self.logger.info("shutdown_requested")
        self._interrupted = True
        self.tally.pause()
        self._done.set()


def setup_signal_handlers(runner: TallyRunner, loop: asyncio.AbstractEventLoop) -> None:
    """Pause and exit cleanly on SIGINT/SIGTERM."""

    def signal_handler(sig: signal.Signals) -> None:
        runner.logger.info("signal_received", signal=sig.name)
        runner.request_shutdown()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler, sig)


async def async_run(tally: TimeTally) -> int:
    """Async entry point for ``run``."""
    runner = TallyRunner(tally)
    setup_signal_handlers(runner, asyncio.get_running_loop())
    return await runner.run()


# =============================================================================
# Commands
# =============================================================================


def print_status(tally: TimeTally) -> None:
    view = tally.view()
    tabs = "  ".join(f"[{t.name}]" if t.is_current else t.name for t in view.tabs)
    print(tabs)
    print(f"{view.list_name} ({view.state})")
    for task in view.tasks:
        marker = "*" if task.is_current else " "
        flag = "" if task.enabled else " (disabled)"
        print(f"{marker} {task.index}. {task.name}: {task.remaining_text} remaining{flag}")
    print(view.timer_text)
    if view.progress_text:
        print(f"Progress: {view.progress_text}")
    print(view.finish_text)


def cmd_list(tally: TimeTally, args: argparse.Namespace) -> bool:
    lists = tally.lists
    if args.action == "create":
        return lists.create_list(args.name, make_current=not args.no_switch)
    if args.action == "rename":
        return lists.rename_list(args.name, args.new_name)
    if args.action == "delete":
        return lists.delete_list(args.name)
    if args.action == "switch":
        switched = lists.switch_list(args.name)
        if switched:
            tally.refresh_voices()
        return switched
    return lists.reorder_lists(args.names)


def cmd_task(tally: TimeTally, args: argparse.Namespace) -> bool:
    tasks = tally.tasks
    if args.action == "add":
        return tasks.add_task(args.name, args.amount, args.unit)
    if args.action == "edit":
        return tasks.edit_task(args.index, name=args.name, duration_seconds=args.seconds)
    if args.action == "remove":
        return tasks.remove_task(args.index)
    if args.action == "move":
        return tasks.move_task(args.index, -1 if args.direction == "up" else 1)
    return tasks.toggle_enabled(args.index)


def cmd_config(tally: TimeTally, args: argparse.Namespace) -> bool:
    changes = {
        "beep_enabled": args.beep,
        "tts_enabled": args.tts,
        "selected_voice": args.voice,
        "notification_mode": args.mode,
        "custom_message": args.message,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if changes and not tally.lists.update_config(**changes):
        return False

    config = tally.workspace.get_or_create_config(tally.workspace.current_list)
    for key, value in config.model_dump().items():
        print(f"{key}: {value.value if hasattr(value, 'value') else value}")
    return True


def cmd_export(tally: TimeTally, args: argparse.Namespace) -> bool:
    filename, document = tally.export()
    if args.output == "-":
        print(document)
        return True
    path = Path(args.output) if args.output else Path.cwd() / filename
    path.write_text(document, encoding="utf-8")
    print(f"Exported {tally.workspace.current_list!r} to {path}")
    return True


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="timetally",
        description="TimeTally - run lists of timed tasks one after another",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--console", action="store_true", help="Use pretty console logging instead of JSON"
    )
    parser.add_argument("--no-audio", action="store_true", help="Disable beeps and speech")
    parser.add_argument(
        "--ephemeral", action="store_true", help="Keep the workspace in memory only"
    )
    parser.add_argument("--config", type=Path, help="Path to a YAML config file")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="Count down the current list")
    sub.add_parser("status", help="Show the current list")
    sub.add_parser("lists", help="Show all lists in order")
    sub.add_parser("voices", help="Show available voices")

    p_list = sub.add_parser("list", help="Create, rename, delete, switch or reorder lists")
    list_sub = p_list.add_subparsers(dest="action", required=True)
    p = list_sub.add_parser("create")
    p.add_argument("name")
    p.add_argument("--no-switch", action="store_true", help="Keep the current list selected")
    p = list_sub.add_parser("rename")
    p.add_argument("name")
    p.add_argument("new_name")
    list_sub.add_parser("delete").add_argument("name")
    list_sub.add_parser("switch").add_argument("name")
    list_sub.add_parser("reorder").add_argument("names", nargs="+")

    p_task = sub.add_parser("task", help="Edit tasks of the current list")
    task_sub = p_task.add_subparsers(dest="action", required=True)
    p = task_sub.add_parser("add")
    p.add_argument("name")
    p.add_argument("amount")
    p.add_argument("--unit", choices=["seconds", "minutes", "hours"], default="seconds")
    p = task_sub.add_parser("edit")
    p.add_argument("index", type=int)
    p.add_argument("--name")
    p.add_argument("--seconds")
    task_sub.add_parser("remove").add_argument("index", type=int)
    p = task_sub.add_parser("move")
    p.add_argument("index", type=int)
    p.add_argument("direction", choices=["up", "down"])
    task_sub.add_parser("toggle").add_argument("index", type=int)

    p_config = sub.add_parser("config", help="Show or change the current list's notifications")
    p_config.add_argument("--beep", action=argparse.BooleanOptionalAction, default=None)
    p_config.add_argument("--tts", action=argparse.BooleanOptionalAction, default=None)
    p_config.add_argument("--voice")
    p_config.add_argument("--mode", choices=[m.value for m in NotificationMode])
    p_config.add_argument("--message")

    p_import = sub.add_parser("import", help="Import tasks from an XML file")
    p_import.add_argument("file", type=Path)
    p_import.add_argument("--mode", choices=[m.value for m in ImportMode], default="add")

    p_export = sub.add_parser("export", help="Export the current list as XML")
    p_export.add_argument("--output", "-o", help="Output path, or - for stdout")

    return parser.parse_args(argv)


def dispatch(tally: TimeTally, args: argparse.Namespace) -> int:
    """Run one command. Returns the process exit code."""
    command = args.command
    if command == "run":
        return asyncio.run(async_run(tally))

    if command == "status":
        print_status(tally)
        return 0
    if command == "lists":
        for name in tally.workspace.list_order:
            marker = "*" if name == tally.workspace.current_list else " "
            print(f"{marker} {name} ({len(tally.workspace.lists[name])} tasks)")
        return 0
    if command == "voices":
        for voice in tally.dispatcher.available_voices:
            print(voice)
        return 0

    handlers = {
        "list": cmd_list,
        "task": cmd_task,
        "config": cmd_config,
        "import": lambda t, a: t.import_file(a.file, a.mode),
        "export": cmd_export,
    }
    if not handlers[command](tally, args):
        print(f"{command}: nothing changed (see log for details)", file=sys.stderr)
        return 1
    if command in ("list", "task", "import"):
        print_status(tally)
    return 0


def configure(args: argparse.Namespace) -> TallyConfig:
    config = load_config(args.config)
    if args.debug:
        config.log.level = "DEBUG"
    if args.console:
        config.log.format = "console"
    if args.no_audio:
        config.audio.enabled = False
    return config


def main(argv: Sequence[str] | None = None) -> NoReturn:
    """Main entry point for the timetally command."""
    args = parse_args(argv)
    config = configure(args)

    setup_logging(
        level=config.log.level,
        format=config.log.format,
        log_file=config.log.file,
    )

    try:
        tally = TimeTally.from_config(config, ephemeral=args.ephemeral)
        bind_list(tally.workspace.current_list)
        exit_code = dispatch(tally, args)
    except OSError as e:
        get_logger("timetally").error("command_failed", error=str(e))
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
