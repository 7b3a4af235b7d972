"""
Convert Command Handler.

This module implements the logic for the `cuda-hipify convert` command.
It orchestrates:
1. Configuration loading (pyproject.toml + CLI overrides).
2. Rule table loading via the Engine.
3. Conversion of a single file or a directory tree.
4. Output writing, trace logging and the statistics summary.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

from rich.table import Table

from cuda_hipify.config import RuntimeConfig
from cuda_hipify.core.conversion_result import ConversionResult
from cuda_hipify.core.engine import HipifyEngine
from cuda_hipify.core.statistics import Statistics
from cuda_hipify.rules import RuleTableError
from cuda_hipify.utils.console import console, log_error, log_info, log_success, log_warning


def handle_convert(
  input_path: Path,
  output_path: Optional[Path],
  to_roc: Optional[bool] = None,
  print_stats: Optional[bool] = None,
  rules_dir: Optional[Path] = None,
  json_trace_path: Optional[Path] = None,
) -> int:
  """
  Handles the 'convert' command execution.

  Args:
      input_path: Path to the source file or directory to convert.
      output_path: Where converted code is written. Files print to stdout
          when omitted; directories require it.
      to_roc: Override for ROC naming.
      print_stats: Override for the statistics summary.
      rules_dir: Override for the rule overlay directory.
      json_trace_path: Optional path to dump execution trace JSON.

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  if not input_path.exists():
    log_error(f"Input not found: {input_path}")
    return 1

  config = RuntimeConfig.load(
    to_roc=to_roc,
    print_stats=print_stats,
    rules_dir=rules_dir,
    search_path=input_path if input_path.is_dir() else input_path.parent,
  )

  try:
    engine = HipifyEngine(config)
  except RuleTableError as e:
    log_error(str(e))
    return 1

  batch_results: Dict[str, ConversionResult] = {}

  if input_path.is_file():
    batch_results[input_path.name] = _convert_single_file(input_path, output_path, engine, json_trace_path)

  else:
    if not output_path:
      log_error("Directory conversion requires --out destination directory.")
      return 1

    sources = _collect_sources(input_path, config.extensions)
    if not sources:
      log_warning(f"No CUDA sources found in {input_path}")
      return 0

    log_info(f"Processing {len(sources)} files from {input_path}...")
    for src_file in sources:
      rel_path = src_file.relative_to(input_path)
      batch_trace = None
      if json_trace_path:
        batch_trace = (output_path / rel_path).with_name(f"{rel_path.name}.trace.json")
      batch_results[str(rel_path)] = _convert_single_file(src_file, output_path / rel_path, engine, batch_trace)

  totals = Statistics()
  for result in batch_results.values():
    totals.merge(result.statistics)
  if config.print_stats:
    print_statistics(totals)

  _print_batch_summary(batch_results)
  return 0 if all(r.success for r in batch_results.values()) else 1


def _collect_sources(root: Path, extensions: List[str]) -> List[Path]:
  suffixes = set(extensions)
  return sorted(p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in suffixes)


def _convert_single_file(
  input_path: Path,
  output_path: Optional[Path],
  engine: HipifyEngine,
  json_trace_path: Optional[Path] = None,
) -> ConversionResult:
  """
  Converts one file and writes the result.

  Args:
      input_path: Source file path.
      output_path: Destination file path (stdout if None).
      engine: Engine holding the loaded rule tables.
      json_trace_path: Path to save trace event logs.

  Returns:
      ConversionResult: Result object containing status and code.
  """
  try:
    with open(input_path, "rt", encoding="utf-8", newline="") as f:
      code = f.read()
  except (OSError, UnicodeDecodeError) as e:
    log_error(f"Failed to read {input_path}: {e}")
    return ConversionResult(file_name=str(input_path), success=False, errors=[str(e)])

  result = engine.run(code, file_name=str(input_path))

  if json_trace_path and result.trace_events:
    try:
      json_trace_path.parent.mkdir(parents=True, exist_ok=True)
      with open(json_trace_path, "wt", encoding="utf-8") as f:
        json.dump(result.trace_events, f, indent=2)
      log_info(f"Trace saved to {json_trace_path}")
    except OSError as e:
      log_error(f"Failed to write trace: {e}")

  if not result.success:
    for error in result.errors:
      log_error(f"{input_path}: {error}")
    return result

  if output_path:
    try:
      output_path.parent.mkdir(parents=True, exist_ok=True)
      with open(output_path, "wt", encoding="utf-8", newline="") as f:
        f.write(result.code)
    except OSError as e:
      log_error(f"Failed to write {output_path}: {e}")
      result.success = False
      result.errors.append(str(e))
      return result
    log_success(f"Converted: {input_path} -> {output_path}")
  else:
    print(result.code, end="")

  return result


def print_statistics(stats: Statistics) -> None:
  """
  Renders the statistics summary tables to the console.

  Args:
      stats: Totals over every converted file.
  """
  summary = Table(title="Conversion Statistics")
  summary.add_column("Metric", style="cyan")
  summary.add_column("Value", justify="right")

  summary.add_row("Files", str(stats.files))
  summary.add_row("CUDA refs", str(stats.total_matches))
  summary.add_row("Unsupported refs", str(stats.total_unsupported))
  summary.add_row("Replacements", str(stats.replacements))
  summary.add_row("Lines touched", f"{stats.lines_touched} / {stats.total_lines}{_percent(stats.lines_touched, stats.total_lines)}")
  summary.add_row("Chars changed", f"{stats.bytes_changed} / {stats.total_bytes}{_percent(stats.bytes_changed, stats.total_bytes)}")
  console.print(summary)

  if stats.conv_counts:
    by_kind = Table(title="References by Conversion Kind")
    by_kind.add_column("Kind", style="cyan")
    by_kind.add_column("Count", justify="right")
    for kind, count in sorted(stats.conv_counts.items(), key=lambda kv: (-kv[1], kv[0].value)):
      by_kind.add_row(kind.value, str(count))
    console.print(by_kind)

  if stats.unsupported_counts:
    unsupported = Table(title="Unsupported References")
    unsupported.add_column("CUDA name", style="red")
    unsupported.add_column("Count", justify="right")
    for name, count in sorted(stats.unsupported_counts.items()):
      unsupported.add_row(name, str(count))
    console.print(unsupported)


def _percent(part: int, whole: int) -> str:
  return f" ({100.0 * part / whole:.1f}%)" if whole else ""


def _print_batch_summary(results: Dict[str, ConversionResult]) -> None:
  """
  Renders a summary table of conversion results to the console.

  Args:
      results: Dictionary mapping filenames to conversion results.
  """
  total = len(results)
  failures = sum(1 for r in results.values() if not r.success)
  warned = sum(1 for r in results.values() if r.success and r.diagnostics)

  if failures == 0 and warned == 0:
    log_success(f"Batch Complete: {total}/{total} files converted cleanly.")
    return

  table = Table(title="Conversion Report")
  table.add_column("File", style="cyan")
  table.add_column("Status", justify="center")
  table.add_column("Issues", style="red")

  for filename, res in results.items():
    if res.success and not res.diagnostics:
      continue
    if not res.success:
      table.add_row(filename, "Failed", "; ".join(res.errors) or "Unknown Error")
    else:
      table.add_row(filename, "Warnings", f"{len(res.diagnostics)} unsupported construct(s)")

  console.print(table)
  console.print(f"\n[bold]Summary:[/bold] {total - failures - warned} Clean, {warned} with Warnings, {failures} Failed.")
