"""CLI interface for rendering HTML documents to paginated PDFs."""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional

from ..config import get_default_output_dir, get_app_version
from ..config.profile_loader import list_available_profiles
from ..config.profile_manager import set_profile
from ..pipeline.errors import DocumentRenderError
from ..pipeline.orchestration import HostFactory, PipelineSettings, generate_from_file

logger = logging.getLogger(__name__)


def collect_html_files(input_path: str) -> List[Path]:
    """Resolve --input to a sorted list of HTML files.

    Args:
        input_path: HTML file or directory containing .html/.htm files

    Returns:
        List of HTML file paths

    Raises:
        FileNotFoundError: If input_path does not exist
        ValueError: If input_path is neither an HTML file nor a directory with HTML files
    """
    path = Path(input_path)
    if not path.exists():
        raise FileNotFoundError(f"Input not found: {input_path}")

    if path.is_file():
        if path.suffix.lower() not in (".html", ".htm"):
            raise ValueError(f"Input is not an HTML file: {input_path}")
        return [path]

    files = sorted(p for p in path.iterdir() if p.is_file() and p.suffix.lower() in (".html", ".htm"))
    if not files:
        raise ValueError(f"No HTML files found in {input_path}")
    return files


def process_batch(
    input_path: str,
    output_dir: str,
    settings: PipelineSettings,
    filename: Optional[str] = None,
    fail_fast: bool = False,
    verbose: bool = False,
    host_factory: Optional[HostFactory] = None,
) -> Dict:
    """Render every HTML file under input_path into output_dir.

    Args:
        input_path: HTML file or directory
        output_dir: Directory for generated PDFs
        settings: Pipeline settings
        filename: Output filename hint (single-file input only)
        fail_fast: Stop on first error
        verbose: Print per-file details
        host_factory: Optional render host factory

    Returns:
        Dict with keys processed, ok, failed, outputs (paths), errors
    """
    files = collect_html_files(input_path)
    if filename and len(files) > 1:
        raise ValueError("--filename can only be used with a single input file")

    results = {
        "processed": 0,
        "ok": 0,
        "failed": 0,
        "outputs": [],
        "errors": [],
    }

    for i, html_file in enumerate(files, start=1):
        if verbose:
            print(f"[{i}/{len(files)}] {html_file.name}")
        results["processed"] += 1
        try:
            document = generate_from_file(
                html_file,
                filename_hint=filename,
                settings=settings,
                host_factory=host_factory,
            )
            path = document.save(output_dir)
        except (DocumentRenderError, OSError, UnicodeDecodeError) as e:
            results["failed"] += 1
            results["errors"].append({"file": str(html_file), "error": str(e)})
            logger.error(f"Failed to render {html_file}: {e}")
            if fail_fast:
                break
            continue

        results["ok"] += 1
        results["outputs"].append(str(path))
        print(f"  {html_file.name} -> {path} ({document.page_count} page(s))")

    return results


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="docraster - Render HTML documents into paginated A4 PDFs"
    )

    parser.add_argument(
        "--input",
        required=False,
        help="HTML file or directory of HTML files"
    )

    parser.add_argument(
        "--output",
        required=False,
        help="Output directory for PDF files (default: ./out)"
    )

    parser.add_argument(
        "--filename",
        required=False,
        help="Output filename (single input file only; default: input file name)"
    )

    parser.add_argument(
        "--profile",
        type=str,
        default="default",
        help="Render profile name (default: default)"
    )

    parser.add_argument(
        "--page-numbers",
        action="store_true",
        help="Add an 'i / N' footer to every page"
    )

    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop processing on first error"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--list-profiles",
        action="store_true",
        help="List available render profiles and exit"
    )

    parser.add_argument(
        "--check-deps",
        action="store_true",
        help="Check that Chromium and required libraries are installed, then exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {get_app_version()}"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s" if args.verbose else "%(message)s",
    )

    if args.list_profiles:
        for name in list_available_profiles():
            print(name)
        return

    if args.check_deps:
        from .check_deps import run_check
        sys.exit(0 if run_check(verbose=True) else 1)

    if not args.input:
        parser.error("--input is required (unless using --list-profiles or --check-deps)")

    output_dir = args.output
    if not output_dir:
        output_dir = str(get_default_output_dir())
        print(f"Using default output directory: {output_dir}")

    try:
        profile = set_profile(args.profile)
        settings = PipelineSettings.from_profile(profile)
        if args.page_numbers:
            settings = replace(settings, page_numbers=True)

        results = process_batch(
            args.input,
            output_dir,
            settings,
            filename=args.filename,
            fail_fast=args.fail_fast,
            verbose=args.verbose,
        )
    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(1)

    print(f"\nDone: {results['processed']} processed. OK={results['ok']}, failed={results['failed']}.")
    for error in results["errors"]:
        print(f"  {error['file']}: {error['error']}", file=sys.stderr)

    sys.exit(1 if results["failed"] > 0 else 0)


if __name__ == "__main__":
    main()
