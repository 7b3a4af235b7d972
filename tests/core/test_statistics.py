"""
Tests for the Statistics accumulator and diagnostics.

Verifies:
1. `increment` fills the name, kind and API buckets plus unsupported/deprecated.
2. `record_file` counts lines with and without a trailing newline.
3. `merge` folds per-file statistics into a running total.
4. Diagnostics carry 1-based line/column and format like compiler messages.
"""

from cuda_hipify.core.diagnostics import UNSUPPORTED_HEADER, DiagnosticsEngine, Severity
from cuda_hipify.core.statistics import Statistics
from cuda_hipify.enums import ApiType, ConvType


# --- Counters ---


def test_increment_buckets():
  stats = Statistics()
  stats.increment("cudaMalloc", ConvType.MEMORY, ApiType.RUNTIME)
  stats.increment("cudaMalloc", ConvType.MEMORY, ApiType.RUNTIME)
  stats.increment("cudaBindTexture", ConvType.MEMORY, ApiType.RUNTIME, unsupported=True)
  stats.increment("cudaThreadSynchronize", ConvType.DEVICE, ApiType.RUNTIME, deprecated=True)

  assert stats.name_counts == {"cudaMalloc": 2, "cudaBindTexture": 1, "cudaThreadSynchronize": 1}
  assert stats.conv_counts == {ConvType.MEMORY: 3, ConvType.DEVICE: 1}
  assert stats.api_counts == {ApiType.RUNTIME: 4}
  assert stats.unsupported_counts == {"cudaBindTexture": 1}
  assert stats.deprecated_counts == {"cudaThreadSynchronize": 1}
  assert stats.total_matches == 4
  assert stats.total_unsupported == 1


def test_record_file():
  stats = Statistics()
  stats.record_file("a\nb")
  stats.record_file("c\n")
  stats.record_file("")
  assert stats.files == 3
  assert stats.total_lines == 3
  assert stats.total_bytes == 5


def test_lines_touched_counts_distinct_lines():
  stats = Statistics()
  for line in (1, 1, 3):
    stats.line_touched(line)
  assert stats.lines_touched == 2


# --- Merge ---


def test_merge():
  first = Statistics()
  first.increment("cudaFree", ConvType.MEMORY, ApiType.RUNTIME)
  first.patch_applied(8)
  first.line_touched(1)
  first.record_file("cudaFree(p);\n")

  second = Statistics()
  second.increment("cudaFree", ConvType.MEMORY, ApiType.RUNTIME)
  second.increment("cublasCreate", ConvType.MATH, ApiType.BLAS, unsupported=True)
  second.patch_applied(12)
  second.line_touched(1)
  second.record_file("x\ny\n")

  totals = Statistics().merge(first).merge(second)
  assert totals.name_counts == {"cudaFree": 2, "cublasCreate": 1}
  assert totals.api_counts == {ApiType.RUNTIME: 2, ApiType.BLAS: 1}
  assert totals.unsupported_counts == {"cublasCreate": 1}
  assert totals.replacements == 2
  assert totals.bytes_changed == 20
  assert totals.lines_touched == 2
  assert totals.files == 2
  assert totals.total_lines == 3


def test_merge_leaves_source_untouched():
  source = Statistics()
  source.increment("cudaFree", ConvType.MEMORY, ApiType.RUNTIME)
  Statistics().merge(source).increment("cudaFree", ConvType.MEMORY, ApiType.RUNTIME)
  assert source.name_counts == {"cudaFree": 1}


# --- Diagnostics ---


def test_diagnostic_position_and_format():
  engine = DiagnosticsEngine("int a;\n#include <x.h>\n", file_name="k.cu")
  diag = engine.report(7, UNSUPPORTED_HEADER)
  assert (diag.line, diag.column) == (2, 1)
  assert diag.severity == Severity.WARNING
  assert diag.format("k.cu") == "k.cu:2:1: warning: Unsupported CUDA header."
  assert len(engine) == 1


def test_error_severity():
  engine = DiagnosticsEngine("x")
  diag = engine.report(0, "boom", severity=Severity.ERROR)
  assert diag.format() == "<input>:1:1: error: boom"
