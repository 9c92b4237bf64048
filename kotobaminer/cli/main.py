import argparse
import csv
import json
import sys
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn
from rich.table import Table
from rich.tree import Tree

from ..utils.logger import setup_logger

logger = logging.getLogger(__name__)

console = Console()

POLL_INTERVAL = 0.1


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="kotobaminer",
        description="kotobaminer - vocabulary mining for Japanese text and subtitles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the default analysis options as YAML and exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    _add_tree_subparser(subparsers)
    _add_analyze_subparser(subparsers)
    _add_balance_subparser(subparsers)

    return parser


def _add_tree_subparser(subparsers):
    """Add the tree subcommand."""
    tree_parser = subparsers.add_parser(
        "tree", help="Show the supported source files found under a directory"
    )
    tree_parser.add_argument("root", type=Path, help="Corpus root directory")


def _add_analyze_subparser(subparsers):
    """Add the analyze subcommand."""
    analyze_parser = subparsers.add_parser(
        "analyze", help="Segment a corpus and report term frequencies"
    )
    analyze_parser.add_argument("root", type=Path, help="Corpus root directory")
    analyze_parser.add_argument(
        "--config", type=Path, help="YAML file with analysis options"
    )
    analyze_parser.add_argument(
        "--min-freq", type=int, help="Minimum corpus frequency to report"
    )
    analyze_parser.add_argument(
        "--max-freq", type=int, help="Maximum corpus frequency to report"
    )
    unknown = analyze_parser.add_mutually_exclusive_group()
    unknown.add_argument(
        "--include-unknown",
        dest="include_unknown",
        action="store_true",
        default=None,
        help="Report words the dictionary does not know",
    )
    unknown.add_argument(
        "--exclude-unknown",
        dest="include_unknown",
        action="store_false",
        help="Hide words the dictionary does not know",
    )
    analyze_parser.add_argument(
        "--top", type=int, default=30, help="Number of terms to print (default: 30)"
    )
    analyze_parser.add_argument("--csv", type=Path, help="Write term rows to a CSV file")
    analyze_parser.add_argument("--json", type=Path, help="Write term rows to a JSON file")
    analyze_parser.add_argument(
        "--exclude-hapax",
        action="store_true",
        help="Leave terms seen only once out of exported rows",
    )
    budget = analyze_parser.add_mutually_exclusive_group()
    budget.add_argument(
        "--balance-files", type=int, help="Select at most N files for maximum coverage"
    )
    budget.add_argument(
        "--balance-mb", type=float, help="Select at most X MB of files for maximum coverage"
    )
    _add_dictionary_arguments(analyze_parser)


def _add_balance_subparser(subparsers):
    """Add the balance subcommand."""
    balance_parser = subparsers.add_parser(
        "balance",
        help="Pick a balanced subset of files, by source or by vocabulary coverage",
    )
    balance_parser.add_argument("root", type=Path, help="Corpus root directory")
    balance_parser.add_argument(
        "--seed", type=int, default=None, help="Random seed for source sampling"
    )
    budget = balance_parser.add_mutually_exclusive_group()
    budget.add_argument(
        "--max-files", type=int, help="Greedy coverage selection of at most N files"
    )
    budget.add_argument(
        "--max-mb", type=float, help="Greedy coverage selection of at most X MB"
    )
    balance_parser.add_argument(
        "--config", type=Path, help="YAML file with analysis options"
    )
    _add_dictionary_arguments(balance_parser)


def _add_dictionary_arguments(parser):
    parser.add_argument(
        "--dicdir", type=Path, help="MeCab dictionary directory (default: unidic-lite)"
    )
    parser.add_argument(
        "--no-cache", action="store_true", help="Do not reuse cached segmentation"
    )


def _load_options(args):
    from ..config import AnalysisOptions, load_options

    try:
        return load_options(args.config) if args.config else AnalysisOptions()
    except (OSError, ValueError) as e:
        console.print(f"[red]Invalid config {args.config}:[/red] {e}")
        return None


def _balance_target(max_files: Optional[int], max_mb: Optional[float]):
    """Budget from the command line, or None after reporting an invalid one."""
    from ..config import BYTES_PER_MB, BalanceTarget

    try:
        if max_files is not None:
            return BalanceTarget(max_files=max_files)
        return BalanceTarget(max_bytes=int(max_mb * BYTES_PER_MB))
    except ValueError as e:
        console.print(f"[red]Invalid budget:[/red] {e}")
        return None


def _make_pipeline(args, options):
    from ..pipeline import Pipeline
    from ..utils.cache import WordCache

    cache = None if args.no_cache else WordCache()
    return Pipeline(options=options, dicdir=args.dicdir, cache=cache)


def _run_with_progress(pipeline, root: Path):
    """Run the pipeline in the background, polling progress. Ctrl-C cancels."""
    from ..tasks import TaskManager

    manager = TaskManager()
    handle = pipeline.start(manager, root)
    with Progress(
        SpinnerColumn(), *Progress.get_default_columns(), transient=True
    ) as progress:
        task = progress.add_task(f"Analyzing {root}...", total=None)
        while not handle.is_finished():
            try:
                snapshot = handle.progress.snapshot()
                progress.update(
                    task,
                    total=snapshot.total_files or None,
                    completed=snapshot.files_processed,
                    description=snapshot.message or snapshot.stage.value,
                )
                handle.join(POLL_INTERVAL)
            except KeyboardInterrupt:
                console.print("[yellow]Cancelling after the current file...[/yellow]")
                handle.cancel()
    return handle.result()


def _print_terms(result, top: int) -> None:
    table = Table(title=f"Top {min(top, len(result.terms))} of {len(result.terms)} terms")
    table.add_column("#", justify="right")
    table.add_column("Lemma")
    table.add_column("Reading")
    table.add_column("POS")
    table.add_column("Freq", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Score", justify="right")
    for idx, term in enumerate(result.terms[:top], start=1):
        table.add_row(
            str(idx),
            term.lemma,
            term.lemma_reading,
            term.part_of_speech.value,
            str(term.frequency),
            str(term.file_count),
            f"{term.weighted_score:.1f}",
        )
    console.print(table)


def _print_files(result) -> None:
    table = Table(title="Comprehension by file")
    table.add_column("File")
    table.add_column("Terms", justify="right")
    table.add_column("Known", justify="right")
    table.add_column("Comprehension", justify="right")
    for path in sorted(result.files, key=str):
        report = result.files[path]
        table.add_row(
            path.name,
            str(report.term_count),
            str(report.known_term_count),
            f"{report.comprehension:.1%}",
        )
    console.print(table)


def _print_diagnostics(result) -> None:
    for diagnostic in result.diagnostics:
        where = f" (sentence {diagnostic.sentence_index})" if diagnostic.sentence_index is not None else ""
        console.print(f"[yellow]Skipped[/yellow] {diagnostic.path}{where}: {diagnostic.message}")


def _write_rows(rows, csv_path: Optional[Path], json_path: Optional[Path]) -> None:
    from ..analysis.export import EXPORT_FIELDS

    if csv_path:
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        with open(csv_path, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=EXPORT_FIELDS)
            writer.writeheader()
            for row in rows:
                writer.writerow(row.to_dict())
        console.print(f"CSV: {csv_path}")
    if json_path:
        json_path.parent.mkdir(parents=True, exist_ok=True)
        json_path.write_text(
            json.dumps([row.to_dict() for row in rows], ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        console.print(f"JSON: {json_path}")


def cmd_tree(args) -> int:
    """Execute the tree command."""
    from ..analysis.file_tree import FileTreeBuilder

    file_tree = FileTreeBuilder().build(args.root)

    def add(branch, node):
        for child in node.children:
            if child.is_file:
                branch.add(f"{child.name} [dim]({child.size} bytes)[/dim]")
            else:
                add(branch.add(f"[bold]{child.name}/[/bold]"), child)

    rendered = Tree(f"[bold]{args.root}[/bold]")
    add(rendered, file_tree.root)
    console.print(rendered)
    console.print(f"{file_tree.root.count_files()} files")
    for skipped in file_tree.skipped:
        console.print(f"[yellow]Unreadable:[/yellow] {skipped}")
    return 0


def cmd_analyze(args) -> int:
    """Execute the analyze command."""
    from ..analysis.export import build_export_rows
    from ..config import ExportOptions
    from ..errors import KotobaMinerError

    options = _load_options(args)
    if options is None:
        return 1
    if args.min_freq is not None:
        options.minimum_frequency = args.min_freq
    if args.max_freq is not None:
        options.maximum_frequency = args.max_freq
    if args.include_unknown is not None:
        options.include_unknown_words = args.include_unknown
    if args.balance_files is not None or args.balance_mb is not None:
        target = _balance_target(args.balance_files, args.balance_mb)
        if target is None:
            return 1
        options.corpus_balance_target = target

    try:
        result = _run_with_progress(_make_pipeline(args, options), args.root)
    except KotobaMinerError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    if result.cancelled:
        console.print("[yellow]Analysis cancelled; showing partial results[/yellow]")
    _print_diagnostics(result)
    _print_terms(result, args.top)
    _print_files(result)

    if result.balance is not None:
        console.print(
            f"Balanced selection: {len(result.balance.selected)} files, "
            f"coverage {result.balance.coverage:.1%}"
        )
        for path in result.balance.selected:
            console.print(f"  {path}")

    if args.csv or args.json:
        rows = build_export_rows(result, ExportOptions(exclude_hapax=args.exclude_hapax))
        _write_rows(rows, args.csv, args.json)

    return 0


def cmd_balance(args) -> int:
    """Execute the balance command."""
    from ..analysis.balancer import balance_by_source
    from ..analysis.file_tree import FileTreeBuilder
    from ..errors import KotobaMinerError

    if args.max_files is None and args.max_mb is None:
        file_tree = FileTreeBuilder().build(args.root)
        selected = balance_by_source(file_tree.sizes(), seed=args.seed)
        for path in selected:
            console.print(str(path))
        console.print(f"{len(selected)} of {file_tree.root.count_files()} files selected")
        return 0

    options = _load_options(args)
    if options is None:
        return 1
    target = _balance_target(args.max_files, args.max_mb)
    if target is None:
        return 1
    options.corpus_balance_target = target

    try:
        result = _run_with_progress(_make_pipeline(args, options), args.root)
    except KotobaMinerError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    for path in result.balance.selected:
        console.print(str(path))
    console.print(
        f"{len(result.balance.selected)} files, {result.balance.total_bytes} bytes, "
        f"coverage {result.balance.coverage:.1%}"
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logger("kotobaminer", logging.DEBUG if args.verbose else logging.INFO)

    if args.dump_config:
        from ..config import AnalysisOptions, dump_options

        print(dump_options(AnalysisOptions()), end="")
        return 0

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "tree": cmd_tree,
        "analyze": cmd_analyze,
        "balance": cmd_balance,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
