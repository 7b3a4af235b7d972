"""
Main Entry Point for cuda-hipify CLI.

This module handles argument parsing and dispatches to specific command
handlers defined in `cuda_hipify.cli.commands`.
"""

import argparse
from pathlib import Path
from typing import List, Optional

from cuda_hipify import __version__
from cuda_hipify.cli import commands


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Parses arguments via argparse and calls the appropriate handler function.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="cuda-hipify: CUDA to HIP source translator")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: CONVERT ---
  cmd_conv = subparsers.add_parser("convert", help="Translate a CUDA file or directory to HIP")
  cmd_conv.add_argument("path", type=Path, help="Input source file or directory")
  cmd_conv.add_argument("--out", type=Path, help="Output destination (file or dir). Prints to stdout if omitted.")
  cmd_conv.add_argument(
    "--roc",
    action="store_true",
    default=None,
    help="Use ROC library names (rocBLAS, MIOpen, ...) where available (Overrides config)",
  )
  cmd_conv.add_argument(
    "--print-stats",
    action="store_true",
    default=None,
    help="Print conversion statistics (Overrides config)",
  )
  cmd_conv.add_argument("--rules-dir", type=Path, default=None, help="Directory of extra JSON rule tables")
  cmd_conv.add_argument(
    "--json-trace", type=Path, default=None, help="Dump full execution trace (events, patches) to a JSON file."
  )

  # --- Command: LOOKUP ---
  cmd_look = subparsers.add_parser("lookup", help="Show the rule for a CUDA identifier or header")
  cmd_look.add_argument("name", help="CUDA identifier, device function or header filename")
  cmd_look.add_argument("--roc", action="store_true", default=None, help="Resolve the ROC variant")
  cmd_look.add_argument("--rules-dir", type=Path, default=None, help="Directory of extra JSON rule tables")

  args = parser.parse_args(argv)

  if args.command == "convert":
    return commands.handle_convert(
      args.path,
      args.out,
      to_roc=args.roc,
      print_stats=args.print_stats,
      rules_dir=args.rules_dir,
      json_trace_path=args.json_trace,
    )

  elif args.command == "lookup":
    return commands.handle_lookup(args.name, to_roc=args.roc, rules_dir=args.rules_dir)

  return 0


if __name__ == "__main__":
  raise SystemExit(main())
