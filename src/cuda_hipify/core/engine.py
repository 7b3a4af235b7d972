"""
Orchestration Engine.

This module provides the `HipifyEngine`, the primary driver for converting one
CUDA source text into HIP.

The pipeline for a file is strictly sequential:

1.  **Lexical Pass**: every raw token is offered to the lexical rewriter
    (identifiers and string literals).
2.  **Structural Pass**: preprocessing events (includes, pragmas, `#ifndef`)
    and structural matches (kernel launches, extern shared arrays, device
    calls) are handled in file order.
3.  **Finalization**: the runtime include is inserted if no runtime header was
    substituted.
4.  **Application**: accepted patches are applied to the original text.

Rule tables are loaded once per engine and shared by every `run`; all other
state belongs to the `HipifyAction` of one run.
"""

import logging
import traceback
from typing import Optional

from cuda_hipify.config import RuntimeConfig
from cuda_hipify.core.action import HipifyAction
from cuda_hipify.core.conversion_result import ConversionResult
from cuda_hipify.core.statistics import Statistics
from cuda_hipify.core.tracer import TraceLogger
from cuda_hipify.frontend.driver import run_frontend
from cuda_hipify.rules import RuleTables

logger = logging.getLogger(__name__)


class HipifyEngine:
  """
  Converts CUDA source text to HIP.
  """

  def __init__(self, config: Optional[RuntimeConfig] = None, rules: Optional[RuleTables] = None):
    """
    Initializes the engine.

    Args:
        config: Conversion settings. Defaults to `RuntimeConfig()`.
        rules: Rule tables. Loaded from the packaged files (plus
            `config.rules_dir`) if omitted.

    Raises:
        RuleTableError: If a rule file cannot be loaded.
    """
    self.config = config or RuntimeConfig()
    self.rules = rules if rules is not None else RuleTables.load(self.config.rules_dir)

  def run(self, code: str, file_name: str = "<input>") -> ConversionResult:
    """
    Executes the full conversion pipeline on one file.

    Args:
        code (str): The CUDA source text.
        file_name (str): Name used in diagnostics.

    Returns:
        ConversionResult: Converted code, patches, diagnostics and statistics.
        On an internal failure `success` is False and `code` is the input.
    """
    tracer = TraceLogger()
    statistics = Statistics()
    statistics.record_file(code)
    tracer.start_phase("Conversion Pipeline", file_name)
    logger.debug("Converting %s (%d chars)", file_name, len(code))

    action = HipifyAction(code, self.rules, self.config, statistics, tracer, file_name)
    try:
      run_frontend(code, action, device_functions=self.rules.device_function_names)
      new_code = action.apply()
    except Exception as e:
      logger.debug(traceback.format_exc())
      tracer.end_phase()
      return ConversionResult(
        code=code,
        file_name=file_name,
        diagnostics=action.diagnostics.diagnostics,
        statistics=statistics,
        errors=[f"Conversion failed: {e}"],
        success=False,
        trace_events=tracer.export(),
      )

    tracer.end_phase()
    return ConversionResult(
      code=new_code,
      file_name=file_name,
      replacements=action.ledger.replacements,
      rejected=list(action.ledger.rejected),
      diagnostics=action.diagnostics.diagnostics,
      statistics=statistics,
      trace_events=tracer.export(),
    )
