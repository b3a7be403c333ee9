"""Command-line interface for progview."""

import asyncio
import sys
from typing import AsyncIterator, Optional

from .cli_builder import build_arg_parser
from .errors import SetupError
from .formatters import OutputFormatter
from .line import LineOptions
from .line import render as render_lines
from .tree import Root
from .tui import (
    Interrupt,
    SetInformation,
    SetInterruptMode,
    Text,
    Title,
    TuiOptions,
    render_with_input,
)
from .workload import Workload


def information(workload: Workload) -> list:
    """Lines for the dashboard's information pane."""
    stats = workload.stats
    return [
        Title("Workload"),
        Text(f"workers: {workload.workers}"),
        Text(f"jobs per worker: {workload.jobs_per_worker}"),
        Title("Results"),
        Text(f"done: {stats.jobs_done}"),
        Text(f"failed: {stats.jobs_failed}"),
        Text("finished" if workload.is_finished() else "running"),
    ]


async def workload_events(workload: Workload, deferred: bool, keep_running: bool) -> AsyncIterator:
    """Events reporting on `workload`; they end once the work is done."""
    if deferred:
        yield SetInterruptMode(Interrupt.DEFERRED)
    while not workload.is_finished():
        yield SetInformation(information(workload))
        await asyncio.sleep(0.5)
    yield SetInformation(information(workload))
    if deferred:
        yield SetInterruptMode(Interrupt.INSTANTLY)
    if keep_running:
        await asyncio.Event().wait()


class CLI:
    """Command-line interface for progview."""

    def __init__(self):
        self.parser = build_arg_parser()

    def run(self, argv: Optional[list[str]] = None) -> int:
        """Run the CLI.

        Args:
            argv: Command-line arguments (defaults to sys.argv[1:])

        Returns:
            Exit code
        """
        args = self.parser.parse_args(argv)
        output = OutputFormatter(no_color=args.no_color)

        if args.workers < 1 or args.jobs < 1:
            output.print_error("--workers and --jobs must be at least 1")
            return 1
        if args.frames_per_second is not None and args.frames_per_second <= 0:
            output.print_error("--fps must be positive")
            return 1

        root = Root()
        workload = Workload(root, workers=args.workers, jobs_per_worker=args.jobs, seed=args.seed)
        try:
            if args.mode == "line":
                return self._run_line(args, output, root, workload)
            return self._run_tui(args, output, root, workload)
        except SetupError as e:
            output.print_error(str(e))
            return 1
        except KeyboardInterrupt:
            return 130
        finally:
            workload.stop()

    def _run_line(self, args, output: OutputFormatter, root: Root, workload: Workload) -> int:
        options = LineOptions.for_console(
            output.console,
            level_filter=args.level_filter,
            keep_running_if_progress_is_empty=args.keep_running,
            timestamp=args.timestamp,
            hide_cursor=True,
        )
        if args.no_color:
            options.colored = False
        if args.frames_per_second is not None:
            options.frames_per_second = args.frames_per_second

        workload.start()
        with render_lines(output.console, root, options) as handle:
            workload.wait()
            if args.keep_running:
                handle.wait()
        sym = output.symbols
        stats = workload.stats
        output.print(f"{sym.Check} {stats.jobs_done} jobs done, {stats.jobs_failed} failed")
        return 0 if stats.jobs_failed == 0 else 2

    def _run_tui(self, args, output: OutputFormatter, root: Root, workload: Workload) -> int:
        options = TuiOptions(
            title=args.title,
            recompute_column_width_every_nth_frame=args.column_width_every,
            redraw_only_on_state_change=args.skip_unchanged,
        )
        if args.frames_per_second is not None:
            options.frames_per_second = args.frames_per_second

        events = workload_events(workload, args.deferred_interrupt, args.keep_running)
        dashboard = render_with_input(root, options, events)
        workload.start()
        asyncio.run(dashboard)
        if not workload.is_finished():
            output.print_warning("dashboard closed before all work was done")
            return 1
        stats = workload.stats
        output.print(f"{output.symbols.Check} {stats.jobs_done} jobs done, {stats.jobs_failed} failed")
        return 0 if stats.jobs_failed == 0 else 2


def main() -> int:
    """Entry point for the CLI."""
    cli = CLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
