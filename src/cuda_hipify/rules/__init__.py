"""
Rule Tables Package.

Static CUDA -> HIP/ROC mappings loaded from JSON and exposed through
`RuleTables`.
"""

from cuda_hipify.rules.loader import RuleTableError, RuleTableLoader
from cuda_hipify.rules.schema import RuleEntry, RuleTableFile, TableKind
from cuda_hipify.rules.tables import RuleTables

__all__ = [
  "RuleEntry",
  "RuleTableError",
  "RuleTableFile",
  "RuleTableLoader",
  "RuleTables",
  "TableKind",
]
