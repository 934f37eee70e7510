#!/usr/bin/env python3
"""
Swagify - Response Annotation Sync
==================================
Keeps [SwaggerResponse] attributes on ASP.NET controller actions in sync with
the responses the actions actually return.

Features:
  - Adds a response annotation for every status code an action returns
  - Rewrites payload types (typeof) to match the objects actually returned
  - Never touches existing descriptions
  - Dry run by default; --write applies edits, --diff shows them
  - CI gate mode (--check) and JSON reports

Usage: python main.py [OPTIONS] <path>
"""

import sys
import os
import json
import argparse
import difflib
import tempfile
import shutil
import logging
from pathlib import Path
from typing import List, Dict, Any, Optional, Callable
from datetime import datetime

# =============================================================================
# VERSION
# =============================================================================
__version__ = "1.0.0"

# =============================================================================
# DEPENDENCY CHECK
# =============================================================================
REQUIRED = {
    "rich": "rich>=13.7.0",
    "git": "gitpython>=3.1.40",
    "dotenv": "python-dotenv>=1.0.0",
    "yaml": "pyyaml>=6.0",
}

def check_deps():
    missing = []
    for mod, pkg in REQUIRED.items():
        try:
            __import__(mod)
        except ImportError:
            missing.append(pkg)
    if missing:
        print(f"\nMissing: pip install {' '.join(missing)}\n")
        sys.exit(1)

check_deps()

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.syntax import Syntax
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn
from rich import box
from dotenv import load_dotenv
import git
import yaml

from swagify import SwagifyConfig, SwagifyRefactoringProvider, DocumentResult, is_handler_document

load_dotenv()
console = Console()

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Configure structured logging for every swagify.* logger."""
    logger = logging.getLogger("swagify")
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Clear existing handlers
    logger.handlers.clear()

    # Console handler with structured format
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)  # Only warnings and errors to console
    console_formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    # File handler if specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
            datefmt='%Y-%m-%dT%H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger

logger = setup_logging()

# =============================================================================
# SYNC ORCHESTRATOR
# =============================================================================
class SwagifyRunner:
    """
    Runs the refactoring provider over every controller under a target.

    The target may be a single .cs file or a directory. Errors are isolated
    per file and per method.
    """

    def __init__(self, target_path: str, config: Optional[SwagifyConfig] = None):
        self.target = Path(target_path)
        self.config = config or SwagifyConfig.from_env()
        self.provider = SwagifyRefactoringProvider(self.config)
        self.results: List[DocumentResult] = []
        self.stats = {
            "files_scanned": 0,
            "files_skipped": 0,
            "files_errored": 0,
        }

    def should_ignore(self, path: Path) -> bool:
        """Check if path should be ignored."""
        for part in path.parts:
            if part in self.config.ignore_dirs:
                return True
        return False

    def _collect_files(self) -> List[Path]:
        """Collect all controller files."""
        if self.target.is_file():
            if is_handler_document(self.target.name, self.config.handler_suffix):
                return [self.target]
            logger.warning(f"Skipping {self.target}: name does not end with {self.config.handler_suffix}")
            self.stats["files_skipped"] += 1
            return []

        all_files = []
        for root, dirs, files in os.walk(self.target):
            # Modify dirs in-place to skip ignored directories
            dirs[:] = [d for d in dirs if d not in self.config.ignore_dirs]

            for f in sorted(files):
                fp = Path(root) / f
                if self.should_ignore(fp.relative_to(self.target)):
                    self.stats["files_skipped"] += 1
                    continue

                if is_handler_document(f, self.config.handler_suffix):
                    all_files.append(fp)
                else:
                    self.stats["files_skipped"] += 1

        return sorted(all_files)

    def _sync_single_file(
        self,
        fp: Path,
        methods: Optional[List[str]] = None,
        line: Optional[int] = None,
    ) -> Optional[DocumentResult]:
        """
        Sync a single file with error isolation.
        Returns None when the file was skipped or unreadable.
        """
        try:
            file_size_mb = fp.stat().st_size / (1024 * 1024)
            if file_size_mb > self.config.max_file_size_mb:
                logger.warning(f"Skipping large file {fp}: {file_size_mb:.1f}MB > {self.config.max_file_size_mb}MB")
                self.stats["files_skipped"] += 1
                return None

            # newline='' keeps CRLF documents intact on write
            with open(fp, 'r', encoding=self.config.encoding, newline='') as f:
                content = f.read()

        except (IOError, UnicodeDecodeError) as e:
            logger.warning(f"File read error {fp}: {e}")
            self.stats["files_errored"] += 1
            return None

        result = self.provider.sync_document(str(fp), content, methods=methods, line=line)
        if result.error:
            self.stats["files_errored"] += 1
        self.stats["files_scanned"] += 1
        return result

    def run(
        self,
        methods: Optional[List[str]] = None,
        line: Optional[int] = None,
        progress_cb: Optional[Callable[[int, int, Path], None]] = None,
    ) -> List[DocumentResult]:
        self.results = []
        all_files = self._collect_files()

        for i, fp in enumerate(all_files):
            if progress_cb:
                progress_cb(i + 1, len(all_files), fp)

            result = self._sync_single_file(fp, methods=methods, line=line)
            if result is not None:
                self.results.append(result)

        logger.info(f"Sync complete: {len(self.results)} file(s) processed")
        return self.results

    def write_changes(self) -> List[str]:
        """Write every changed document back to disk."""
        written = []
        for result in self.results:
            if not result.changed:
                continue
            with open(result.path, 'w', encoding=self.config.encoding, newline='') as f:
                f.write(result.new_source)
            logger.info(f"Wrote {result.path}")
            written.append(result.path)
        return written

    def summary(self) -> Dict[str, Any]:
        outcomes = [m for r in self.results for m in r.methods]
        by_status = {"changed": 0, "unchanged": 0, "failed": 0}
        for m in outcomes:
            by_status[m.status] = by_status.get(m.status, 0) + 1

        return {
            "files_scanned": self.stats["files_scanned"],
            "files_skipped": self.stats["files_skipped"],
            "files_errored": self.stats["files_errored"],
            "files_changed": sum(1 for r in self.results if r.changed),
            "methods": len(outcomes),
            "by_status": by_status,
            "responses_added": sum(len(m.added) for m in outcomes),
            "responses_retyped": sum(len(m.retyped) for m in outcomes),
        }

# =============================================================================
# OUTPUT FORMATTERS
# =============================================================================
def fmt_status(status: str) -> str:
    colors = {"changed": "yellow", "unchanged": "green", "failed": "red"}
    return f"[{colors.get(status, 'white')}]{status}[/{colors.get(status, 'white')}]"

def make_table(results: List[DocumentResult]) -> Table:
    t = Table(title=" Controller Actions", box=box.ROUNDED, header_style="bold magenta")
    t.add_column("#", style="dim", width=4)
    t.add_column("Method", style="cyan", max_width=32)
    t.add_column("Status", width=10)
    t.add_column("Added", max_width=30)
    t.add_column("Retyped", max_width=30)
    t.add_column("Reason", max_width=40)
    t.add_column("File:Line", style="dim", max_width=30)

    rows = [(r, m) for r in results for m in r.methods]
    for i, (result, m) in enumerate(rows[:100], 1):
        loc = f"{Path(result.path).name}:{m.line}"
        t.add_row(
            str(i), m.name, fmt_status(m.status),
            ", ".join(m.added), ", ".join(m.retyped), m.reason or "", loc
        )

    if len(rows) > 100:
        t.add_row("...", f"... +{len(rows) - 100} more", "", "", "", "", "")

    return t

def make_summary(s: Dict[str, Any]) -> Panel:
    txt = f"""
[bold cyan] Sync Summary[/bold cyan]

[bold]Files Scanned:[/bold] {s['files_scanned']} | Skipped: {s['files_skipped']} | Errored: {s['files_errored']}
[bold]Files Needing Changes:[/bold] {s['files_changed']}

[bold cyan]Actions ({s['methods']}):[/bold cyan]
   Changed: {s['by_status'].get('changed', 0)}
   Unchanged: {s['by_status'].get('unchanged', 0)}
   Failed: {s['by_status'].get('failed', 0)}

[bold cyan]Responses:[/bold cyan]
   Added: {s['responses_added']}
   Retyped: {s['responses_retyped']}
"""
    return Panel(txt, title=" Swagify Results", border_style="cyan")

def make_diff(result: DocumentResult) -> str:
    return "".join(difflib.unified_diff(
        result.source.splitlines(keepends=True),
        result.new_source.splitlines(keepends=True),
        fromfile=f"a/{result.path}",
        tofile=f"b/{result.path}",
    ))

# =============================================================================
# GIT HELPER
# =============================================================================
def clone_repo(url: str) -> str:
    tmp = tempfile.mkdtemp(prefix="swagify_")
    console.print(f"[cyan]Cloning: {url}[/cyan]")
    git.Repo.clone_from(url, tmp, depth=1)
    console.print(f"[green] Cloned[/green]")
    return tmp

# =============================================================================
# MAIN CLI
# =============================================================================
def main():
    parser = argparse.ArgumentParser(
        description=f"Swagify v{__version__} - sync [SwaggerResponse] attributes with controller returns",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py ./src                                  # Dry run, report only
  python main.py ./src --diff                           # Show the edits
  python main.py ./src --write                          # Apply the edits
  python main.py UsersController.cs --method GetUser    # One action
  python main.py UsersController.cs --line 42 --write   # Action at the cursor line
  python main.py ./src --check                          # CI gate mode
        """
    )

    # Target
    parser.add_argument("target", help="Controller file, directory or Git URL")

    # Selection
    select_group = parser.add_argument_group("Selection")
    select_group.add_argument("--method", metavar="NAME", action="append",
                              help="Only sync this action (repeatable)")
    select_group.add_argument("--line", type=int, metavar="N",
                              help="Only sync the action whose declaration spans line N (file targets)")

    # Edit options
    edit_group = parser.add_argument_group("Edit Options")
    edit_group.add_argument("--write", action="store_true",
                            help="Write changes back to the files")
    edit_group.add_argument("--diff", action="store_true",
                            help="Print unified diffs of the changes")
    edit_group.add_argument("--check", action="store_true",
                            help="Exit with status 1 if any action needs syncing")

    # Output options
    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument("-o", "--output", help="Output JSON file")

    # Configuration
    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument("--config", metavar="FILE",
                              help="Configuration file (JSON/YAML)")
    config_group.add_argument("--max-file-size", type=int, metavar="MB",
                              help="Max file size in MB to process")
    config_group.add_argument("--log-level", default="INFO",
                              choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                              help="Logging level (default: INFO)")
    config_group.add_argument("--log-file", metavar="FILE",
                              help="Write JSON-line logs to file")

    # General
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--quiet", "-q", action="store_true", help="Minimal output")

    args = parser.parse_args()

    setup_logging(args.log_level, args.log_file)

    # Banner
    if not args.quiet:
        console.print(Panel.fit(
            f"[bold cyan] Swagify v{__version__}[/bold cyan]\n"
            "[dim][SwaggerResponse] ⇄ return statements[/dim]",
            border_style="cyan"
        ))

    target = args.target
    tmp = None
    exit_code = 0

    try:
        # Build configuration
        if args.config:
            config = SwagifyConfig.from_file(args.config)
        else:
            config = SwagifyConfig.from_env()

        # Override with CLI args
        if args.max_file_size is not None:
            config.max_file_size_mb = args.max_file_size

        # Clone if URL
        if target.startswith(("http://", "https://", "git@")):
            if args.write:
                console.print("[red]Error: --write is not supported for remote targets[/red]")
                sys.exit(2)
            tmp = clone_repo(target)
            target = tmp
        elif not os.path.exists(target):
            console.print(f"[red]Error: {target} not found[/red]")
            sys.exit(1)

        if args.line is not None and not os.path.isfile(target):
            console.print("[red]Error: --line needs a single file target[/red]")
            sys.exit(2)

        runner = SwagifyRunner(target, config)

        if not args.quiet:
            console.print(f"\n[bold cyan] Syncing...[/bold cyan]")

        # Progress callback
        def progress_cb(cur, tot, fp):
            if not args.quiet:
                prog.update(task, completed=(cur / tot) * 100,
                            description=f"[cyan]{Path(fp).name[:25]}")

        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
                      BarColumn(), TextColumn("{task.percentage:>3.0f}%"),
                      console=console, disable=args.quiet) as prog:
            task = prog.add_task("[cyan]Syncing", total=100)
            results = runner.run(methods=args.method, line=args.line, progress_cb=progress_cb)

        summary = runner.summary()

        # Print results
        if not args.quiet:
            console.print("\n" + "=" * 70)
            console.print(make_summary(summary))
            console.print()
            if summary["methods"]:
                console.print(make_table(results))

            failed_files = [r for r in results if r.error]
            if failed_files:
                console.print(f"\n[bold red] Unparseable files: {len(failed_files)}[/bold red]")
                for r in failed_files[:10]:
                    console.print(f"   {r.path}: {r.error}")

        if args.diff:
            for result in results:
                if result.changed:
                    console.print(Syntax(make_diff(result), "diff", theme="ansi_dark"))

        if args.write:
            written = runner.write_changes()
            if not args.quiet:
                console.print(f"\n[green] Updated {len(written)} file(s)[/green]")

        # Export outputs
        if args.output:
            data = {
                "timestamp": datetime.now().isoformat(),
                "target": args.target,
                "version": __version__,
                "config": config.to_dict(),
                "summary": summary,
                "files": [r.to_dict() for r in results],
            }
            with open(args.output, 'w') as f:
                json.dump(data, f, indent=2)
            if not args.quiet:
                console.print(f"\n[green] Saved: {args.output}[/green]")

        # Determine exit code
        if args.check and not args.write and summary["files_changed"] > 0:
            if not args.quiet:
                console.print("\n[bold red] Failed: response annotations are out of sync[/bold red]")
            exit_code = 1

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except (OSError, ValueError, TypeError, yaml.YAMLError, git.GitCommandError) as e:
        console.print(f"\n[red]Error: {e}[/red]")
        if args.verbose:
            console.print_exception()
        sys.exit(1)
    finally:
        if tmp and os.path.exists(tmp):
            shutil.rmtree(tmp, ignore_errors=True)

    if not args.quiet and exit_code == 0:
        console.print("\n[bold green] Complete![/bold green]")

    sys.exit(exit_code)

if __name__ == "__main__":
    main()
