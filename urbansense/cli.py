"""Command-line entrypoint for running the assistant."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
from typing import Sequence

from dotenv import load_dotenv

from .config import AppConfig, load_config
from .locales import available_locales
from .logging_utils import configure_logging
from .orchestrator import Orchestrator
from .preferences import JsonPreferenceStore
from .prompt_builder import build_prompt
from .providers import bind_capture, bind_location, bind_speech_input, bind_speech_output
from .types import SessionSnapshot, Task

_TASK_CHOICES = [task.value for task in Task]
_INTERACTIVE_KEYS = {
    "1": Task.FIND_BUS,
    "2": Task.CROSS_ROAD,
    "3": Task.EXPLORE,
    "4": Task.FIND_SHOP,
}


def _parse_location(value: str) -> tuple[float, float]:
    try:
        lat_text, lon_text = value.split(",", 1)
        return float(lat_text), float(lon_text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("expected LAT,LON") from exc


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="UrbanSense assistant runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m urbansense.cli --task find_bus --mock --speech console\n"
            "  python -m urbansense.cli --command \"help me cross this road\" --image street.jpg\n"
            "  python -m urbansense.cli --voice --language es-ES\n"
            "  python -m urbansense.cli --interactive --listen keyboard --speech console\n"
            "  python -m urbansense.cli --task find_shop --query pharmacy --prompt-only\n"
        ),
    )
    parser.add_argument("--task", choices=_TASK_CHOICES, help="Run a single task")
    parser.add_argument("--command", type=str, help="Dispatch a typed voice command")
    parser.add_argument("--voice", action="store_true", help="Listen for one spoken command")
    parser.add_argument("--interactive", action="store_true", help="Keyboard-driven session loop")
    mock_group = parser.add_mutually_exclusive_group()
    mock_group.add_argument("--mock", action="store_true", help="Use mock analysis for this run")
    mock_group.add_argument(
        "--no-mock", action="store_true", help="Use real analysis for this run"
    )
    parser.add_argument("--language", type=str, help="Locale code, e.g. en-US, hi-IN, es-ES")
    parser.add_argument("--image", type=str, help="Use a still image instead of the camera")
    parser.add_argument("--camera", type=int, help="OpenCV camera index (negative disables)")
    parser.add_argument(
        "--speech", choices=["tts", "console"], default="tts", help="Speech output adapter"
    )
    parser.add_argument(
        "--listen",
        choices=["microphone", "keyboard", "none"],
        default="microphone",
        help="Speech input adapter",
    )
    parser.add_argument("--location", type=_parse_location, help="Fixed LAT,LON")
    parser.add_argument("--no-location", action="store_true", help="Skip the location lookup")
    parser.add_argument("--query", type=str, help="Shop query used with --prompt-only")
    parser.add_argument(
        "--prompt-only", action="store_true", help="Print the prompt for --task and exit"
    )
    parser.add_argument("--list-locales", action="store_true", help="Print supported locales")
    parser.add_argument("--show-debug", action="store_true", help="Print the final session snapshot")
    return parser.parse_args(argv)


def build_orchestrator(args: argparse.Namespace, cfg: AppConfig) -> Orchestrator:
    capture = bind_capture(
        image_path=args.image,
        camera_index=args.camera if args.camera is not None else cfg.camera_index,
        jpeg_quality=cfg.jpeg_quality,
    )
    location = bind_location(
        enabled=cfg.fetch_location,
        url=cfg.location_url,
        timeout_s=cfg.location_timeout_s,
        fixed=args.location,
    )
    preferences = JsonPreferenceStore(cfg.prefs_path) if cfg.prefs_path else None
    orchestrator = Orchestrator(
        cfg,
        capture=capture,
        speech_output=bind_speech_output(args.speech),
        speech_input=bind_speech_input(args.listen),
        location=location,
        preferences=preferences,
    )
    # Run flags override this session only; saved preferences stay as they were.
    if args.language and not orchestrator.set_locale(args.language, persist=False):
        print(f"Unsupported locale {args.language!r}; using {orchestrator.locale.code}")
    if args.mock or args.no_mock:
        orchestrator.set_mock_mode(args.mock, persist=False)
    return orchestrator


def _print_status(snapshot: SessionSnapshot) -> None:
    print(f"status={snapshot.state} {snapshot.status}")


async def _interactive(orchestrator: Orchestrator) -> None:
    labels = ", ".join(
        f"{key}={orchestrator.task_label(task)}" for key, task in _INTERACTIVE_KEYS.items()
    )
    print(f"Keys: {labels}, v=voice, l <code>=language, m=toggle mock, q=quit")
    while True:
        try:
            line = (await asyncio.to_thread(input, "> ")).strip()
        except EOFError:
            return
        if line in {"q", "quit", "exit"}:
            return
        if line in _INTERACTIVE_KEYS:
            await orchestrator.select_task(_INTERACTIVE_KEYS[line])
        elif line == "v":
            await orchestrator.start_listening()
        elif line.startswith("l "):
            if not orchestrator.set_locale(line[2:].strip()):
                print("Unsupported locale")
        elif line == "m":
            orchestrator.set_mock_mode(not orchestrator.snapshot().mock_mode)
            print(f"mock_mode={orchestrator.snapshot().mock_mode}")
        elif line:
            await orchestrator.handle_voice_command(line)


async def _run(args: argparse.Namespace, cfg: AppConfig) -> SessionSnapshot:
    orchestrator = build_orchestrator(args, cfg)
    orchestrator.subscribe(_print_status)
    await orchestrator.start()
    try:
        if args.task:
            await orchestrator.select_task(Task(args.task))
        elif args.command:
            await orchestrator.handle_voice_command(args.command)
        elif args.voice:
            await orchestrator.start_listening()
        elif args.interactive:
            await _interactive(orchestrator)
    finally:
        orchestrator.shutdown()
    return orchestrator.snapshot()


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    load_dotenv()
    cfg = load_config()
    if args.no_location:
        cfg = dataclasses.replace(cfg, fetch_location=False)
    elif args.location is not None:
        cfg = dataclasses.replace(cfg, fetch_location=True)
    configure_logging(cfg.debug)

    if args.list_locales:
        for code, name in available_locales():
            print(f"{code}\t{name}")
        return

    if args.prompt_only:
        if not args.task:
            raise SystemExit("--prompt-only requires --task")
        prompt = build_prompt(Task(args.task), user_query=args.query)
        print(prompt.text)
        if args.show_debug or cfg.debug:
            print(f"prompt_debug={prompt.debug}")
        return

    if not (args.task or args.command or args.voice or args.interactive):
        raise SystemExit("Provide one of --task, --command, --voice or --interactive")

    snapshot = asyncio.run(_run(args, cfg))
    if args.show_debug or cfg.debug:
        print(f"snapshot={snapshot}")


if __name__ == "__main__":
    main()
