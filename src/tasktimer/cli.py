from __future__ import annotations

import argparse
import csv
import json
import sys
from pathlib import Path
from typing import Optional, TextIO

from .config import TimerConfig, config_path, load_config, save_config
from .errors import (
    ConfigError,
    InvalidDescription,
    InvalidTransition,
    IoFailure,
    MalformedRecord,
    NotFound,
)
from .logger import configure_logging, log, reset_logging
from .models import TimerState
from .prompt import read_description, show_entries
from .store import LogStore
from .summary import build_summary, render_summary_text
from .timer import TaskTimer, worked_seconds
from .utils import default_data_dir, format_duration

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _index(value: str) -> int:
    try:
        i = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid index: {value!r}") from None
    if i < 1:
        raise argparse.ArgumentTypeError("index must be 1 or greater")
    return i


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tasktimer",
        description="Start, pause, resume and stop task timers recorded in a CSV log.",
    )
    p.add_argument("--file", default=None, help="Log file to use for this command only.")
    p.add_argument(
        "-o",
        "--output-file",
        default=None,
        help="Set the log file and remember it in the config for later commands.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Print debug logging to stderr.")
    p.add_argument("--version", action="store_true", help="Print version and exit.")

    sub = p.add_subparsers(dest="cmd", required=False)

    ps = sub.add_parser("start", help="Start timing a new task.")
    ps.add_argument("description", nargs="+", help="Task description.")

    pa = sub.add_parser("add", help="Type a task description interactively, then start it.")
    pa.add_argument("--show", action="store_true", help="Show recent entries before asking.")

    for name, text in (
        ("pause", "Pause a running task."),
        ("resume", "Resume a paused task."),
        ("stop", "Stop a task and record its elapsed time."),
        ("status", "Show the state and elapsed time of a task."),
    ):
        sp = sub.add_parser(name, help=text)
        sp.add_argument("index", nargs="?", type=_index, default=None, help="Entry index (default: latest).")

    pd = sub.add_parser("delete", help="Delete an entry (later entries are renumbered).")
    pd.add_argument("index", type=_index, help="Entry index.")

    pl = sub.add_parser("list", help="List logged tasks, oldest first.")
    pl.add_argument("--limit", type=int, default=None, help="Only show the most recent N entries.")
    pl.add_argument("--blocks", action="store_true", help="Show entries as blocks instead of one line each.")

    psum = sub.add_parser("summary", help="Show tracked time per day.")
    g = psum.add_mutually_exclusive_group()
    g.add_argument("--daily", action="store_true", help="Today only (default).")
    g.add_argument("--weekly", action="store_true", help="The last 7 days.")
    g.add_argument("--days", type=int, default=None, metavar="N", help="The last N days.")

    pe = sub.add_parser("export", help="Export all entries.")
    pe.add_argument("--format", choices=["json", "csv"], default="json", help="Export format.")
    pe.add_argument("--out", default=None, help="Output file path (default: stdout).")

    pc = sub.add_parser("config", help="Inspect configuration.")
    cs = pc.add_subparsers(dest="config_cmd", required=True)
    cs.add_parser("show", help="Show the effective configuration.")
    return p


def main(argv: list[str] | None = None, *, stdin: Optional[TextIO] = None) -> int:
    from . import __version__
    argv = argv if argv is not None else sys.argv[1:]
    p = _parser()
    args = p.parse_args(argv)

    if args.version:
        print(__version__)
        return EXIT_OK

    if args.cmd is None and args.output_file is None:
        p.print_help()
        return EXIT_OK

    data_dir = default_data_dir()
    try:
        cfg = load_config(data_dir)
        if args.output_file:
            cfg.output_file = str(Path(args.output_file).expanduser().resolve())
            save_config(cfg, data_dir)
            print(f"Using output file: {cfg.output_file}")
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    log_path = Path(args.file).expanduser() if args.file else cfg.log_path(data_dir)
    try:
        configure_logging(data_dir / "logs", cfg.log_level, console=args.verbose)
    except OSError as exc:
        # data dir not writable: console only
        print(f"Warning: file logging disabled: {exc}", file=sys.stderr)
        configure_logging(None, cfg.log_level, console=args.verbose)
    try:
        return _dispatch(args, cfg, log_path, data_dir, stdin=stdin)
    finally:
        reset_logging()


def _dispatch(args, cfg: TimerConfig, log_path: Path, data_dir: Path, *, stdin: Optional[TextIO]) -> int:
    if args.cmd is None:
        return EXIT_OK

    if args.cmd == "config":
        return _cmd_config(args, cfg, log_path, data_dir)

    store = LogStore(log_path)
    timer = TaskTimer(store)
    log.debug("Running %s against %s", args.cmd, log_path)

    try:
        if args.cmd == "start":
            return _cmd_start(timer, " ".join(args.description))
        if args.cmd == "add":
            return _cmd_add(timer, args, stdin=stdin)
        if args.cmd == "pause":
            return _cmd_pause(timer, args)
        if args.cmd == "resume":
            return _cmd_resume(timer, args)
        if args.cmd == "stop":
            return _cmd_stop(timer, args)
        if args.cmd == "status":
            return _cmd_status(timer, args)
        if args.cmd == "delete":
            return _cmd_delete(store, args)
        if args.cmd == "list":
            return _cmd_list(timer, args)
        if args.cmd == "summary":
            return _cmd_summary(timer, args)
        if args.cmd == "export":
            return _cmd_export(store, args)
    except (NotFound, InvalidTransition, InvalidDescription) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except MalformedRecord as exc:
        log.error("Malformed log %s: %s", log_path, exc)
        print(f"Error: {log_path}: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except IoFailure as exc:
        log.error("I/O failure: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    return EXIT_USAGE


def _cmd_start(timer: TaskTimer, description: str) -> int:
    index = timer.start(description)
    print(f"Started task #{index}: {description}")
    return EXIT_OK


def _cmd_add(timer: TaskTimer, args, *, stdin: Optional[TextIO]) -> int:
    if args.show:
        records = timer.store.list()
        if records:
            print(show_entries(records[-5:], timer.now()))
    description = read_description(stdin)
    if not description:
        print("No task description entered; nothing recorded.", file=sys.stderr)
        return EXIT_USAGE
    return _cmd_start(timer, description)


def _cmd_pause(timer: TaskTimer, args) -> int:
    rec = timer.pause(args.index)
    print(f"Paused task #{rec.index}.")
    return EXIT_OK


def _cmd_resume(timer: TaskTimer, args) -> int:
    rec = timer.resume(args.index)
    print(f"Resumed task #{rec.index} (paused {format_duration(rec.paused_seconds)} in total).")
    return EXIT_OK


def _cmd_stop(timer: TaskTimer, args) -> int:
    rec = timer.stop(args.index)
    when = rec.stopped_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    print(f"Stopped task #{rec.index} at {when}. Elapsed: {format_duration(rec.elapsed_seconds)} ({rec.elapsed_seconds}s)")
    if rec.paused_seconds:
        print(f"Paused: {format_duration(rec.paused_seconds)}")
    return EXIT_OK


def _cmd_status(timer: TaskTimer, args) -> int:
    rec, state, secs = timer.status(args.index)
    print(f"Task #{rec.index}: {rec.description}")
    print(f"  state:   {state.value}")
    print(f"  started: {rec.start_time.astimezone().strftime('%Y-%m-%d %H:%M:%S')}")
    if state is TimerState.PAUSED:
        print(f"  paused:  {format_duration(rec.paused_seconds)} before this pause")
    else:
        print(f"  elapsed: {format_duration(secs)}")
        if rec.paused_seconds:
            print(f"  paused:  {format_duration(rec.paused_seconds)}")
    return EXIT_OK


def _cmd_delete(store: LogStore, args) -> int:
    store.delete(args.index)
    print(f"Deleted task #{args.index} from {store.path}.")
    return EXIT_OK


def _cmd_list(timer: TaskTimer, args) -> int:
    records = timer.store.list()
    if not records:
        print("No tasks logged yet.")
        return EXIT_OK
    if args.limit is not None and args.limit > 0:
        records = records[-args.limit:]

    now = timer.now()
    if args.blocks:
        print(show_entries(records, now))
        return EXIT_OK

    print(f"Tasks (showing {len(records)}):")
    for r in records:
        when = r.start_time.astimezone().strftime("%Y-%m-%d %H:%M:%S")
        secs = worked_seconds(r, now)
        print(f"  #{r.index:<5} {when}  {format_duration(secs):>11}  {r.state.value:<8}  {r.description}")
    return EXIT_OK


def _cmd_summary(timer: TaskTimer, args) -> int:
    if args.weekly:
        days = 7
    elif args.days is not None:
        days = max(1, int(args.days))
    else:
        days = 1
    rep = build_summary(timer.store.list(), days=days, now=timer.now())
    print(render_summary_text(rep))
    return EXIT_OK


def _cmd_export(store: LogStore, args) -> int:
    rows = []
    for r in store.list():
        rows.append(
            {
                "index": r.index,
                "start_time": r.start_time.isoformat(),
                "description": r.description,
                "elapsed_seconds": r.elapsed_seconds,
                "paused_seconds": r.paused_seconds,
                "state": r.state.value,
                "paused_since": r.paused_since.isoformat() if r.paused_since else None,
                "stopped_at": r.stopped_at.isoformat() if r.stopped_at else None,
            }
        )

    try:
        if args.format == "json":
            payload = json.dumps(rows, indent=2)
            if args.out:
                Path(args.out).write_text(payload, encoding="utf-8")
                print(f"Wrote {len(rows)} rows to {args.out}")
            else:
                print(payload)
            return EXIT_OK

        # csv
        if args.out:
            out_f = open(args.out, "w", newline="", encoding="utf-8")
            close = True
        else:
            out_f = sys.stdout
            close = False

        try:
            fieldnames = [
                "index",
                "start_time",
                "description",
                "elapsed_seconds",
                "paused_seconds",
                "state",
                "paused_since",
                "stopped_at",
            ]
            w = csv.DictWriter(out_f, fieldnames=fieldnames)
            w.writeheader()
            for row in rows:
                w.writerow(row)
        finally:
            if close:
                out_f.close()
                print(f"Wrote {len(rows)} rows to {args.out}")
    except OSError as exc:
        raise IoFailure("write", args.out, exc.strerror or str(exc)) from exc
    return EXIT_OK


def _cmd_config(args, cfg: TimerConfig, log_path: Path, data_dir: Path) -> int:
    if args.config_cmd == "show":
        print(f"Config file: {config_path(data_dir)}")
        print(f"Data dir:    {data_dir}")
        print(f"Log file:    {log_path}")
        print(f"Log level:   {cfg.log_level}")
        return EXIT_OK
    return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
