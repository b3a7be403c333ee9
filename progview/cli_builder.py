"""Factory for constructing the CLI argument parser."""

import argparse


def parse_level_range(value: str) -> tuple[int, int]:
    """Parse an inclusive level range such as `1..2` or a single level `2`."""
    lo, sep, hi = value.partition("..")
    try:
        if not sep:
            return int(lo), int(lo)
        return int(lo or 0), int(hi) if hi else 2**16 - 1
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid level range: '{value}' (expected LO..HI)") from e


def build_arg_parser() -> argparse.ArgumentParser:
    """Construct the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="progview",
        description="progview - render a simulated progress tree in the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "mode",
        nargs="?",
        choices=["line", "tui"],
        default="line",
        help="Scrolling line renderer or full-screen dashboard (default: line)",
    )

    parser.add_argument(
        "--fps",
        dest="frames_per_second",
        type=float,
        default=None,
        help="Frames drawn per second (default: 6 for line, 10 for tui)",
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=4,
        help="Number of simulated workers (default: 4)",
    )

    parser.add_argument(
        "--jobs",
        type=int,
        default=5,
        help="Jobs run by each worker (default: 5)",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the simulated workload",
    )

    parser.add_argument(
        "--no-color",
        dest="no_color",
        action="store_true",
        help="Disable colored output",
    )

    parser.add_argument(
        "--timestamp",
        action="store_true",
        help="Prefix messages with the time they were logged (line mode)",
    )

    parser.add_argument(
        "--levels",
        dest="level_filter",
        type=parse_level_range,
        default=None,
        help="Only show tasks within this inclusive level range, e.g. 1..2 (line mode)",
    )

    parser.add_argument(
        "--keep-running",
        dest="keep_running",
        action="store_true",
        help="Keep drawing after all work is done until interrupted",
    )

    parser.add_argument(
        "--title",
        default="Progress Dashboard",
        help="Window title (tui mode)",
    )

    parser.add_argument(
        "--column-width-every",
        dest="column_width_every",
        type=int,
        default=None,
        help="Recompute the task column width only every N frames (tui mode)",
    )

    parser.add_argument(
        "--skip-unchanged",
        dest="skip_unchanged",
        action="store_true",
        help="Skip frames when nothing changed since the last one (tui mode)",
    )

    parser.add_argument(
        "--deferred-interrupt",
        dest="deferred_interrupt",
        action="store_true",
        help="Quitting waits until all work is done (tui mode)",
    )

    return parser
