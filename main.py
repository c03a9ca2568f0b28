#!/usr/bin/env python3
"""
SketchSolve - Draw or photograph a math problem and get a worked solution.

Entry point for the application with CLI support.

Usage:
    sketchsolve                             # Launch GUI
    sketchsolve --check "(x+1)^2" "x^2+2x+1" # Compare two expressions
    sketchsolve --solve photo.jpg           # Solve an image through the relay
    sketchsolve --serve                     # Run the relay server
"""

import sys
import os
import argparse
from typing import Optional

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(__file__))

from sketchsolve import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sketchsolve",
        description="Sketch or photograph a math problem and get a worked solution",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sketchsolve                                  Launch the GUI
  sketchsolve --check "(x+1)^2" "x^2+2x+1"     Check two expressions
  sketchsolve --check "x+1" "x+2" -f json      Print the verdict as JSON
  sketchsolve --solve photo.jpg                Solve the problem in an image
  sketchsolve --solve photo.jpg --pdf out.pdf  Also write a PDF report
  sketchsolve --serve                          Run the relay on port 3001
        """,
    )

    parser.add_argument(
        "--check",
        nargs=2,
        metavar=("LHS", "RHS"),
        help="Check whether two expressions are equivalent",
    )

    parser.add_argument(
        "--solve",
        metavar="IMAGE",
        help="Send an image file through the relay and print the solution",
    )

    parser.add_argument(
        "--pdf",
        metavar="OUT",
        help="With --solve, also write a PDF report",
    )

    parser.add_argument(
        "--provider",
        help="With --solve, override the configured provider",
    )

    parser.add_argument(
        "--model",
        help="With --solve, override the configured model",
    )

    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the relay server (reads OPENAI_API_KEY / OPENROUTER_API_KEY)",
    )

    # Output format
    parser.add_argument(
        "-f",
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    # GUI mode (explicit)
    parser.add_argument(
        "--gui",
        action="store_true",
        help="Launch GUI mode (default if nothing else is requested)",
    )

    # Version
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # Verbose
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show detailed output",
    )

    return parser


def check_cli(lhs: str, rhs: str, output_format: str) -> int:
    """Compare two expressions and print the verdict."""
    from sketchsolve.checking.equivalence import EquivalenceChecker
    from sketchsolve.models import VerdictKind

    verdict = EquivalenceChecker().check(lhs, rhs)

    if output_format == "json":
        import json

        output = {
            "lhs": lhs,
            "rhs": rhs,
            "verdict": verdict.kind.name.lower(),
            "method": verdict.method or None,
            "residual": verdict.residual,
            "reason": verdict.reason,
        }
        print(json.dumps(output, indent=2))
    else:
        print(verdict.message)

    if verdict.kind is VerdictKind.ERROR:
        return 2
    return 0 if verdict.is_equivalent else 1


def solve_cli(
    image_path: str,
    output_format: str,
    pdf_path: Optional[str],
    provider: Optional[str],
    model: Optional[str],
    verbose: bool,
) -> int:
    """Normalize an image onto the canvas, solve it, and print the answer."""
    import time

    from sketchsolve.canvas.controller import CanvasController
    from sketchsolve.relay.client import RelayClient
    from sketchsolve.utils.constants import PROVIDERS, default_model_for
    from sketchsolve.utils.errors import SketchSolveError, format_error_for_user
    from sketchsolve.utils.settings import SettingsStore

    settings = SettingsStore().load()
    if provider:
        if provider not in PROVIDERS:
            print(f"Error: Unsupported provider: {provider}", file=sys.stderr)
            print(f"Choose one of: {', '.join(sorted(PROVIDERS))}", file=sys.stderr)
            return 1
        if provider != settings.provider:
            settings.model = default_model_for(provider)
        settings.provider = provider
    if model:
        settings.model = model

    canvas = CanvasController()
    try:
        placement = canvas.load_file(image_path)
        if verbose:
            print(
                f"Placed at {placement.width}x{placement.height} "
                f"(scale {placement.scale:.3f}, offset {placement.dx:.0f},{placement.dy:.0f})",
                file=sys.stderr,
            )

        start = time.perf_counter()
        content = RelayClient().solve(settings, canvas.to_data_url())
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        if pdf_path:
            from sketchsolve.output.exporter import SolutionExporter

            SolutionExporter(canvas.export_png(), content).to_pdf(pdf_path)
    except SketchSolveError as e:
        print(f"Error: {format_error_for_user(e)}", file=sys.stderr)
        if e.suggestions:
            print(f"Suggestion: {e.suggestions[0]}", file=sys.stderr)
        return 1

    if output_format == "json":
        import json

        output = {
            "image": image_path,
            "provider": settings.provider,
            "model": settings.model,
            "content": content,
            "time_ms": elapsed_ms,
        }
        if pdf_path:
            output["pdf"] = pdf_path
        print(json.dumps(output, indent=2))
    else:
        print(content)
        if verbose:
            print(
                f"\nSolved in {elapsed_ms}ms using {settings.provider}/{settings.model}",
                file=sys.stderr,
            )

    return 0


def main():
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    from sketchsolve.utils.log import configure_logging

    configure_logging(args.verbose)

    if args.pdf and not args.solve:
        parser.error("--pdf requires --solve")

    # Relay server mode
    if args.serve:
        from sketchsolve.relay.server import RelayConfig, run_server

        run_server(RelayConfig.from_env())
        return 0

    if args.check:
        return check_cli(args.check[0], args.check[1], args.format)

    if args.solve:
        return solve_cli(
            image_path=args.solve,
            output_format=args.format,
            pdf_path=args.pdf,
            provider=args.provider,
            model=args.model,
            verbose=args.verbose,
        )

    # GUI mode
    from sketchsolve.gui.main_window import run_app

    run_app()
    return 0


if __name__ == "__main__":
    sys.exit(main() or 0)
