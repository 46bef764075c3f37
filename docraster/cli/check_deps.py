"""Verify that Chromium and all required libraries are available."""

from __future__ import annotations

import sys
from typing import List, Tuple

from ..config import get_browser_executable, get_headless


def check_dependencies(launch_browser: bool = True) -> List[Tuple[str, bool, str]]:
    """Check required dependencies. Returns list of (name, ok, message)."""
    results: List[Tuple[str, bool, str]] = []

    # --- Python packages ---
    try:
        import fitz  # pymupdf
        results.append(("pymupdf (fitz)", True, "OK"))
    except ImportError as e:
        results.append(("pymupdf (fitz)", False, f"Missing: {e}"))

    try:
        from PIL import Image
        results.append(("Pillow (PIL)", True, "OK"))
    except ImportError as e:
        results.append(("Pillow (PIL)", False, f"Missing: {e}"))

    try:
        import yaml
        results.append(("PyYAML", True, "OK"))
    except ImportError as e:
        results.append(("PyYAML", False, f"Missing: {e}"))

    playwright_ok = False
    try:
        from playwright.sync_api import sync_playwright
        playwright_ok = True
        results.append(("playwright", True, "OK"))
    except ImportError as e:
        results.append(("playwright", False, f"Missing: {e}"))

    # --- Chromium binary (requires playwright) ---
    if not launch_browser:
        return results
    if playwright_ok:
        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(
                    headless=get_headless(),
                    executable_path=get_browser_executable(),
                )
                version = browser.version
                browser.close()
            results.append(("Chromium", True, f"OK, version {version}"))
        except Exception as e:
            err = str(e).split("\n")[0].strip()
            if len(err) > 60:
                err = err[:57] + "..."
            results.append(("Chromium", False, err))
    else:
        results.append(("Chromium", False, "Cannot check (playwright missing)"))

    return results


def run_check(verbose: bool = True) -> bool:
    """Run dependency check, print report, return True if all OK."""
    results = check_dependencies()
    ok_count = sum(1 for _, ok, _ in results if ok)
    all_ok = ok_count == len(results)

    if verbose:
        print("Dependency check (libraries and browser the renderer needs)\n")
        for name, ok, msg in results:
            if ok and msg == "OK":
                print(f"  {name}: OK")
            else:
                status = "OK" if ok else "MISSING/ERROR"
                print(f"  {name}: {status}  {msg}")
        print()
        if all_ok:
            print("All checked dependencies are available.")
        else:
            print(f"Problems with {len(results) - ok_count} of {len(results)}. Install missing packages with: pip install -e .")
            print("Chromium: python -m playwright install chromium")

    return all_ok


if __name__ == "__main__":
    success = run_check(verbose=True)
    sys.exit(0 if success else 1)
