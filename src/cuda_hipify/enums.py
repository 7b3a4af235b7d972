"""
Enumerations for cuda-hipify.

This module defines the categorisation used by the rule tables: which CUDA
API family an entry belongs to, what kind of conversion it performs, and how
well the target dialect supports it.
"""

from enum import Enum


class ApiType(str, Enum):
  """
  CUDA API family of a rule entry.

  Header deduplication is tracked per family (see `cuda_hipify.core.rewriter.includes`).
  """

  DRIVER = "driver"
  RUNTIME = "runtime"
  COMPLEX = "complex"
  BLAS = "blas"
  RAND = "rand"
  DNN = "dnn"
  FFT = "fft"
  SPARSE = "sparse"


class ConvType(str, Enum):
  """
  Kind of conversion a rule entry performs. Used for statistics buckets and
  to tell main library headers apart from auxiliary ones.
  """

  VERSION = "version"
  INIT = "init"
  DEVICE = "device"
  MEMORY = "memory"
  ADDRESSING = "addressing"
  STREAM = "stream"
  EVENT = "event"
  EXECUTION = "execution"
  ERROR = "error"
  TYPE = "type"
  NUMERIC_LITERAL = "numeric_literal"
  LITERAL = "literal"
  GRAPHICS = "graphics"
  MATH = "math"
  DEVICE_FUNC = "device_func"
  INCLUDE = "include"
  INCLUDE_MAIN = "include_main"


class SupportDegree(str, Enum):
  """
  How well the target dialect supports a CUDA name.

  `HIP_UNSUPPORTED` / `ROC_UNSUPPORTED` are unsupported only for one of the
  two output variants.
  """

  FULL = "full"
  DEPRECATED = "deprecated"
  UNSUPPORTED = "unsupported"
  HIP_UNSUPPORTED = "hip_unsupported"
  ROC_UNSUPPORTED = "roc_unsupported"
