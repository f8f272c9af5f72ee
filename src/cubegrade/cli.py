"""
Command-line interface for the cube sketch grader.

Provides commands for grading an exported sketch and writing a default
configuration file.
"""

import argparse
import json
import sys

from cubegrade.config import load_config, save_default_config
from cubegrade.tracer import configure_tracer, get_tracer


# Exit code when the drawing must be redrawn because its edges do not meet
EXIT_UNCLOSED = 2


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="cubegrade",
        description="Grade a freehand perspective cube sketch",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Analyse command
    analyse_parser = subparsers.add_parser("analyse", help="Grade an exported sketch")
    analyse_parser.add_argument(
        "--input", "-i",
        required=True,
        help="Sketch JSON export (lineHistory + canvasSize)",
    )
    analyse_parser.add_argument(
        "--out", "-o",
        default=None,
        help="Path to write the result JSON (stdout if omitted)",
    )
    analyse_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    analyse_parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Include intermediate per-line diagnostics in the result",
    )
    analyse_parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    analyse_parser.add_argument(
        "--trace-level",
        default=None,
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    analyse_parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    analyse_parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )

    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="cubegrade_config.yaml",
        help="Output path for config file",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "analyse":
        return handle_analyse(args)
    elif args.command == "init-config":
        return handle_init_config(args)

    return 0


def handle_analyse(args):
    """Handle the analyse command."""
    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    configure_tracer(
        enabled=args.trace or config.tracing.enabled,
        level=args.trace_level or config.tracing.level,
        file_path=args.trace_file or config.tracing.file_path,
        json_output=args.trace_json or config.tracing.json_output,
    )

    tracer = get_tracer()

    from cubegrade.corners.matching import CornersNotCloseEnoughError
    from cubegrade.io.load_sketch import load_sketch
    from cubegrade.io.save_artifacts import result_payload, save_json
    from cubegrade.pipeline import analyse_with_diagnostics

    try:
        with tracer.span("cli_analyse", module="cli"):
            sketch = load_sketch(args.input)
            result, diagnostics = analyse_with_diagnostics(sketch, config=config)

        include = args.diagnostics or config.output.include_diagnostics
        payload = result_payload(result, diagnostics if include else None)

        if args.out:
            save_json(payload, args.out, indent=config.output.indent)
            print(f"\nGrading completed.")
            print(f"  Strokes: {len(result.analysed_lines)}")
            print(f"  Parallel groups: {result.group_count}")
            print(f"  Perspective score: {result.overall_perspective_score:.1f}")
            print(f"  Average line deviation: {result.average_line_deviation:.2f}")
            print(f"  Average corner distance: {result.average_corner_distance:.2f}")
            print(f"\nResult saved to: {args.out}")
        else:
            print(json.dumps(payload, indent=config.output.indent))

        return 0

    except CornersNotCloseEnoughError as e:
        tracer.event(str(e), level="WARN")
        print(f"\nRedraw needed: {e}", file=sys.stderr)
        return EXIT_UNCLOSED

    except Exception as e:
        tracer.event(f"Grading failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1

    finally:
        get_tracer().config.close()


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
