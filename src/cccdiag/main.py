import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .engine import DiagnosticEngine
from .errors import DiagnosticEngineError
from .host import ConsoleHost
from .ui.app import run_tui
from .utils.lang import is_supported

DEFAULT_LOG_FILE = Path.home() / ".cccdiag" / "engine.log"


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(description="cccdiag: compiler-driven C diagnostics")
    parser.add_argument("files", nargs="*", help="C source files to validate")
    parser.add_argument("--workspace", help="Workspace root used for relative include paths and folder settings")
    parser.add_argument("--once", action="store_true", help="Validate once, print the results and exit")
    parser.add_argument("--json", action="store_true", help="With --once, print diagnostics as JSON")
    parser.add_argument("--log-file", default=str(DEFAULT_LOG_FILE), help="Engine log file")
    parser.add_argument("--verbose", action="store_true", help="Log debug output")
    return parser


def setup_logging(log_file: str, verbose: bool = False) -> None:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger("cccdiag")
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


async def validate_once(files: List[str], host: ConsoleHost, workspace_root: Optional[str] = None) -> bool:
    """Validate every file once. Returns True if any error-level diagnostic was produced."""
    engine = DiagnosticEngine(host, workspace_root=workspace_root)
    tasks = []
    for path in files:
        try:
            document = engine.load_document(path)
        except DiagnosticEngineError as e:
            host.show_error(e.notification())
            continue
        tasks.append(engine.open_document(document))
    await asyncio.gather(*tasks)
    return engine.state.has_errors()


def run():
    parser = _build_parser()
    args = parser.parse_args()

    if not args.files:
        print("Error: No source file specified.")
        print("Usage: cccdiag <file.c> [file.c ...]")
        sys.exit(1)

    # Resolve to absolute paths immediately
    files = [os.path.abspath(f) for f in args.files]

    for abs_path in files:
        if not os.path.exists(abs_path):
            print(f"Error: File not found: {abs_path}")
            sys.exit(1)
        if not is_supported(abs_path):
            print(f"Error: Unsupported file type: {abs_path}. Use .c, .h, .cpp, .cc, .cxx or .hpp")
            sys.exit(1)

    workspace = os.path.abspath(args.workspace) if args.workspace else None
    setup_logging(args.log_file, args.verbose)

    if args.once:
        host = ConsoleHost(as_json=args.json)
        has_errors = asyncio.run(validate_once(files, host, workspace))
        sys.exit(1 if has_errors or host.errors else 0)

    try:
        run_tui(files, workspace_root=workspace)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        print(f"Fatal Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
