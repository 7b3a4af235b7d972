"""
Lookup Command Handler.

Prints the rule(s) a CUDA name resolves to in each table.
"""

from pathlib import Path
from typing import Optional

from rich.table import Table

from cuda_hipify.config import RuntimeConfig
from cuda_hipify.rules import RuleTableError, RuleTables
from cuda_hipify.utils.console import console, log_error, log_warning


def handle_lookup(name: str, to_roc: Optional[bool] = None, rules_dir: Optional[Path] = None) -> int:
  """
  Handles the 'lookup' command execution.

  Args:
      name: CUDA identifier, device function or header filename.
      to_roc: Override for ROC naming.
      rules_dir: Override for the rule overlay directory.

  Returns:
      int: 0 if the name is known, 1 otherwise.
  """
  config = RuntimeConfig.load(to_roc=to_roc, rules_dir=rules_dir)
  try:
    rules = RuleTables.load(config.rules_dir)
  except RuleTableError as e:
    log_error(str(e))
    return 1

  found = [
    (table, entry)
    for table, entry in (
      ("renames", rules.lookup(name)),
      ("includes", rules.lookup_include(name)),
      ("device_functions", rules.lookup_device_function(name)),
    )
    if entry is not None
  ]
  if not found:
    log_warning(f"No rule for '{name}'")
    return 1

  table = Table(title=f"Rules for {name}")
  table.add_column("Table", style="cyan")
  table.add_column("Target", style="green")
  table.add_column("API")
  table.add_column("Kind")
  table.add_column("Support")
  for table_name, entry in found:
    target = entry.target_name(config.to_roc) or "(removed)"
    support = "unsupported" if entry.is_unsupported(config.to_roc) else entry.support.value
    table.add_row(table_name, target, entry.api_type.value, entry.conv_type.value, support)
  console.print(table)
  return 0
