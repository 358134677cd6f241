"""
Command-Line Interface for voicequeue.

Usage:
    voicequeue new story.txt               # Create project from a file
    voicequeue add chapter2.md             # Append more text
    voicequeue config --voice Kore         # Change job settings
    voicequeue run                         # Synthesize pending units
    voicequeue status                      # Show units and progress
    voicequeue retry --all                 # Retry failed units
    voicequeue gain 0.5 3                  # Set gain of unit #3
    voicequeue export -o story.wav         # Merge finished audio
    voicequeue keys add                    # Store API keys
    voicequeue voices                      # List available voices
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    from voicequeue import __version__

    parser = argparse.ArgumentParser(
        prog="voicequeue",
        description="Long-form text to speech - chunk, synthesize and merge narration",
    )
    parser.add_argument("--version", action="version", version=f"voicequeue {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show log output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # --- new ---
    new_parser = subparsers.add_parser("new", help="Create new project")
    new_parser.add_argument("source", nargs="?", help="Source file (EPUB, TXT, MD) or - for stdin")
    new_parser.add_argument("-t", "--title", help="Project title")
    new_parser.add_argument("-o", "--output", help="Output project file path")
    new_parser.add_argument("--lang", default="bn", metavar="CODE", help="Language code (default: bn)")
    _add_config_arguments(new_parser)

    # --- add ---
    add_parser = subparsers.add_parser("add", help="Append text to the project")
    add_parser.add_argument("source", nargs="?", help="Source file or - for stdin")
    add_parser.add_argument("--text", help="Literal text to add")
    add_parser.add_argument("-p", "--project", help="Project file (auto-detected if omitted)")

    # --- config ---
    config_parser = subparsers.add_parser("config", help="Show or change job settings")
    config_parser.add_argument("-p", "--project", help="Project file")
    _add_config_arguments(config_parser)

    # --- run ---
    run_parser = subparsers.add_parser("run", help="Synthesize pending and queued units")
    run_parser.add_argument("-p", "--project", help="Project file")

    # --- status ---
    status_parser = subparsers.add_parser("status", help="Show project status")
    status_parser.add_argument("-p", "--project", help="Project file")
    status_parser.add_argument("-a", "--all", action="store_true", help="List every unit")

    # --- retry ---
    retry_parser = subparsers.add_parser("retry", help="Retry failed units")
    retry_parser.add_argument("unit", nargs="?", help="Unit position or id prefix")
    retry_parser.add_argument("--all", action="store_true", help="Retry every failed unit")
    retry_parser.add_argument("-p", "--project", help="Project file")

    # --- delete ---
    delete_parser = subparsers.add_parser("delete", help="Delete a unit")
    delete_parser.add_argument("unit", help="Unit position or id prefix")
    delete_parser.add_argument("-p", "--project", help="Project file")

    # --- gain ---
    gain_parser = subparsers.add_parser("gain", help="Set unit volume (0.0-2.0)")
    gain_parser.add_argument("value", type=float, help="Linear gain")
    gain_parser.add_argument("unit", nargs="?", help="Unit (omit for selected units, or all)")
    gain_parser.add_argument("-p", "--project", help="Project file")

    # --- select ---
    select_parser = subparsers.add_parser("select", help="Toggle unit selection")
    select_parser.add_argument("units", nargs="*", help="Units to toggle")
    select_parser.add_argument("--all", action="store_true", help="Select every unit")
    select_parser.add_argument("--none", action="store_true", help="Clear the selection")
    select_parser.add_argument("-p", "--project", help="Project file")

    # --- clear ---
    clear_parser = subparsers.add_parser("clear", help="Remove all units and cached audio")
    clear_parser.add_argument("-p", "--project", help="Project file")

    # --- export ---
    export_parser = subparsers.add_parser("export", help="Merge finished audio into one WAV")
    export_parser.add_argument("-o", "--output", help="Output file path")
    export_parser.add_argument("-p", "--project", help="Project file")

    # --- preview ---
    preview_parser = subparsers.add_parser("preview", help="Synthesize a short voice sample")
    preview_parser.add_argument("--voice", help="Voice to preview (default: project voice)")
    preview_parser.add_argument("--text", help="Sample text (default: language preview line)")
    preview_parser.add_argument("-o", "--output", help="Output file path")
    preview_parser.add_argument("-p", "--project", help="Project file (optional)")

    # --- voices ---
    voices_parser = subparsers.add_parser("voices", help="List available voices")
    voices_parser.add_argument("-g", "--gender", help="Filter by gender (male/female)")
    voices_parser.add_argument("-s", "--search", help="Search by name/character")
    voices_parser.add_argument("--styles", action="store_true", help="List style presets instead")

    # --- keys ---
    keys_parser = subparsers.add_parser("keys", help="Manage the API key pool")
    keys_parser.add_argument("action", choices=["list", "add", "remove", "clear"])
    keys_parser.add_argument("keys", nargs="*", help="Keys to add/remove (stdin when omitted for add)")

    return parser


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--voice", help="Voice name (see: voicequeue voices)")
    parser.add_argument("--style", help="Style instruction or preset name")
    parser.add_argument("--rate", help="Speaking rate: Slow, Normal, Fast, Very Fast")
    parser.add_argument("--concurrency", type=int, help="Parallel synthesis calls")
    parser.add_argument("--max-chunk", type=int, help="Soft character budget per unit")
    parser.add_argument("--export-name", help="Default export file name")


def _config_changes(args) -> dict:
    """Collect job setting changes given on the command line."""
    from voicequeue.models import SpeakingRate
    from voicequeue.voices import resolve_style, validate_voice

    changes = {}
    if getattr(args, "voice", None):
        changes["voice"] = validate_voice(args.voice)
    if getattr(args, "style", None) is not None:
        changes["style_instruction"] = resolve_style(args.style)
    if getattr(args, "rate", None):
        changes["speaking_rate"] = SpeakingRate.parse(args.rate)
    if getattr(args, "concurrency", None) is not None:
        changes["concurrency_limit"] = args.concurrency
    if getattr(args, "max_chunk", None) is not None:
        changes["max_chunk_length"] = args.max_chunk
    if getattr(args, "export_name", None) is not None:
        changes["export_filename"] = args.export_name
    return changes


def find_project_file(specified: Optional[str] = None) -> Path:
    """
    Find project file in current directory or use specified path.

    Raises:
        FileNotFoundError: If no project file found
    """
    if specified:
        path = Path(specified)
        if not path.exists():
            raise FileNotFoundError(f"Project file not found: {path}")
        return path

    project_files = list(Path(".").glob("*.voicequeue"))
    if len(project_files) == 1:
        return project_files[0]
    elif len(project_files) > 1:
        raise ValueError(
            "Multiple project files found. Specify one with -p:\n"
            + "\n".join(f"  {p}" for p in project_files)
        )
    else:
        raise FileNotFoundError(
            "No project file found in current directory. "
            "Create one with: voicequeue new <source_file>"
        )


def _load_project(args):
    from voicequeue.project import NarrationProject

    return NarrationProject.load(find_project_file(args.project))


def _read_source(source: str) -> tuple[dict, str]:
    from voicequeue.parser import load_source

    if source == "-":
        return {}, sys.stdin.read()
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return load_source(path)


def _describe_unit(position: int, unit) -> str:
    text = unit.text.replace("\n", " ")
    if len(text) > 50:
        text = text[:47] + "..."
    line = f"  {position:>3}. [{unit.id[:8]}] {unit.status.value:<9}"
    if unit.gain != 1.0:
        line += f" gain={unit.gain:.2f}"
    if unit.selected:
        line += " *"
    return f"{line} {text}"


def cmd_new(args) -> int:
    """Create new project."""
    from voicequeue.language.profile import available_profiles, get_profile
    from voicequeue.models import JobConfig
    from voicequeue.project import NarrationProject, PROJECT_SUFFIX

    try:
        try:
            get_profile(args.lang)
        except ValueError:
            print(f"Error: Unsupported language: {args.lang!r}")
            print(f"Available: {', '.join(available_profiles())}")
            return 1

        config = JobConfig(language_code=args.lang, **_config_changes(args))

        metadata, text = ({}, "")
        if args.source:
            print(f"Creating project from: {args.source}")
            metadata, text = _read_source(args.source)

        title = args.title or metadata.get("title") or "Project 1"
        if args.output:
            output_path = Path(args.output)
        elif args.source and args.source != "-":
            output_path = Path(args.source).with_suffix(PROJECT_SUFFIX)
        else:
            output_path = Path(f"{title}{PROJECT_SUFFIX}")

        project = NarrationProject.new(
            title,
            config,
            author=metadata.get("author", ""),
            source_path=Path(args.source) if args.source and args.source != "-" else None,
            project_path=output_path,
        )
        if text:
            project.add_text(text)
        project.save(output_path)

        print(f"\nProject created: {output_path}")
        print(f"  Title: {project.title}")
        print(f"  Units: {len(project.units)}")
        print(f"  Characters: {project.total_chars:,}")
        print(f"  Voice: {project.config.voice}")
        print("\nNext steps:")
        print("  1. Add API keys: voicequeue keys add")
        print("  2. Synthesize: voicequeue run")
        print("  3. Export: voicequeue export")

        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_add(args) -> int:
    """Append text to the project."""
    try:
        if args.text is not None:
            text = args.text
        elif args.source:
            _, text = _read_source(args.source)
        else:
            print("Error: Give a source file, - for stdin, or --text")
            return 1

        project = _load_project(args)
        units = project.add_text(text)
        project.save()

        print(f"Added {len(units)} units ({len(project.units)} total)")
        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_config(args) -> int:
    """Show or change job settings."""
    try:
        project = _load_project(args)
        changes = _config_changes(args)
        if changes:
            project.configure(**changes)
            project.save()
            print("Settings updated.")

        for key, value in project.config.to_dict().items():
            print(f"  {key}: {value}")
        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def _print_report(report) -> None:
    if not report.started:
        print("Queue is already running.")
        return
    if report.total == 0:
        print("Nothing to synthesize.")
        return
    print(
        f"\nRun {'stopped' if report.cancelled else 'finished'}: "
        f"{report.succeeded} done, {report.failed} failed"
        + (f", {report.discarded} discarded" if report.discarded else "")
    )
    if report.failed:
        print("Retry with: voicequeue retry --all")


def _run_with_progress(project, coro_factory):
    """Run a project coroutine, printing progress and stopping on Ctrl+C."""
    last = [None]

    def show(job):
        progress = job.progress
        if progress.is_idle or progress.current == last[0]:
            return
        last[0] = progress.current
        print(f"  {progress.summary()}")

    unsubscribe = project.store.subscribe(show)
    try:
        return asyncio.run(coro_factory())
    except KeyboardInterrupt:
        print("\nStopping...")
        project.stop()
        return None
    finally:
        unsubscribe()
        project.save()


def cmd_run(args) -> int:
    """Synthesize pending and queued units."""
    try:
        project = _load_project(args)
        job = project.job
        print(f"Synthesizing {len(job.runnable_units)} units with voice {job.config.voice}...")

        report = _run_with_progress(project, project.run)
        if report is not None:
            _print_report(report)
            if report.failed:
                return 1
        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_status(args) -> int:
    """Show project status."""
    from voicequeue.models import UnitStatus

    try:
        project = _load_project(args)
        info = project.info()

        print(f"Title: {info['title']}")
        if info["author"]:
            print(f"Author: {info['author']}")
        print(f"Voice: {info['voice']} ({info['speaking_rate']})")
        print(f"Units: {info['units']} ({info['total_chars']:,} characters)")
        print(
            f"  done {info['done']} | failed {info['failed']} | "
            f"pending {info['pending'] + info['queued']}"
        )
        if info["selected"]:
            print(f"  selected {info['selected']}")

        job = project.job
        for position, unit in enumerate(job.units, 1):
            if args.all or unit.status is UnitStatus.FAILED:
                print(_describe_unit(position, unit))
                if unit.error_message:
                    print(f"       Error: {unit.error_message}")

        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_retry(args) -> int:
    """Retry failed units."""
    try:
        project = _load_project(args)

        if args.all:
            units = project.retry_failed()
            if not units:
                print("No failed units.")
                return 0
            print(f"Retrying {len(units)} units...")
            report = _run_with_progress(project, project.run)
        elif args.unit:
            unit = project.find_unit(args.unit)
            print(f"Retrying unit {unit.id[:8]}...")
            report = _run_with_progress(project, lambda: project.retry(unit.id))
        else:
            print("Error: Give a unit or --all")
            return 1

        if report is not None:
            _print_report(report)
            if report.failed:
                return 1
        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_delete(args) -> int:
    """Delete a unit."""
    try:
        project = _load_project(args)
        unit = project.delete_unit(project.find_unit(args.unit).id)
        project.save()
        print(f"Deleted unit {unit.id[:8]} ({len(project.units)} left)")
        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_gain(args) -> int:
    """Set unit volume."""
    try:
        project = _load_project(args)
        if args.unit:
            unit = project.set_gain(project.find_unit(args.unit).id, args.value)
            print(f"Unit {unit.id[:8]} gain: {unit.gain:.2f}")
        else:
            selected = len(project.job.selected_units)
            project.set_bulk_gain(args.value)
            target = f"{selected} selected units" if selected else "all units"
            print(f"Gain {args.value:.2f} applied to {target}")
        project.save()
        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_select(args) -> int:
    """Toggle unit selection."""
    try:
        project = _load_project(args)
        if args.all or args.none:
            project.select_all(not args.none)
        for ref in args.units:
            project.toggle_selected(project.find_unit(ref).id)
        project.save()
        print(f"{len(project.job.selected_units)} of {len(project.units)} units selected")
        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_clear(args) -> int:
    """Remove all units."""
    try:
        project = _load_project(args)
        count = len(project.units)
        project.clear()
        project.save()
        print(f"Cleared {count} units")
        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_export(args) -> int:
    """Merge finished audio into one WAV."""
    try:
        project = _load_project(args)
        result = project.export(args.output)

        print(f"Exported: {result.output_path}")
        print(f"  Units: {result.unit_count}")
        print(f"  Duration: {result.duration_seconds / 60:.1f} minutes")
        print(f"  Size: {result.size_bytes / 1024:.0f} KB")
        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_preview(args) -> int:
    """Synthesize a short voice sample."""
    from voicequeue.audio.storage import write_atomic
    from voicequeue.project import NarrationProject
    from voicequeue.voices import validate_voice

    try:
        try:
            project = _load_project(args)
        except FileNotFoundError:
            if args.project:
                raise
            project = NarrationProject.new("Preview")

        voice = validate_voice(args.voice) if args.voice else project.config.voice
        container = asyncio.run(project.preview(voice=voice, text=args.text))

        output = Path(args.output or f"preview_{voice.lower()}.wav")
        write_atomic(output, container)
        print(f"Preview saved: {output}")
        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_voices(args) -> int:
    """List available voices."""
    from voicequeue.voices import STYLE_PRESETS, list_voices

    if args.styles:
        print("Style presets:\n")
        for name, instruction in STYLE_PRESETS.items():
            print(f"  {name}: {instruction}")
        return 0

    voices = list_voices(gender=args.gender, search=args.search)
    if not voices:
        print("No voices match.")
        return 1

    print("Available voices:\n")
    for voice in voices:
        print(f"  {voice.label}")
    return 0


def cmd_keys(args) -> int:
    """Manage the API key pool."""
    from voicequeue.settings import (
        Settings,
        get_settings_path,
        load_settings,
        mask_key,
        parse_keys,
        save_settings,
    )

    try:
        settings = load_settings()
        keys = list(settings.api_keys)

        if args.action == "add":
            new_keys = parse_keys(args.keys) if args.keys else parse_keys(sys.stdin.read())
            keys += [k for k in new_keys if k not in keys]
        elif args.action == "remove":
            removed = set(parse_keys(args.keys))
            keys = [k for k in keys if k not in removed]
        elif args.action == "clear":
            keys = []

        if args.action != "list":
            save_settings(Settings(api_keys=tuple(keys)))
            print(f"Saved {len(keys)} keys to {get_settings_path()}")

        if not keys:
            print("No keys stored; the GEMINI_API_KEY environment variable is used.")
        for i, key in enumerate(keys, 1):
            print(f"  {i}. {mask_key(key)}")
        return 0

    except Exception as e:
        print(f"Error: {e}")
        return 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "new": cmd_new,
        "add": cmd_add,
        "config": cmd_config,
        "run": cmd_run,
        "status": cmd_status,
        "retry": cmd_retry,
        "delete": cmd_delete,
        "gain": cmd_gain,
        "select": cmd_select,
        "clear": cmd_clear,
        "export": cmd_export,
        "preview": cmd_preview,
        "voices": cmd_voices,
        "keys": cmd_keys,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
