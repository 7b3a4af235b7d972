"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- A small in-memory rule table so conversions are independent of the
  packaged JSON data.
- Factories for engines and per-file actions bound to that table.
"""

import sys
from pathlib import Path
from typing import Callable

import pytest

# Add src to path so we can import 'cuda_hipify' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from cuda_hipify.config import RuntimeConfig  # noqa: E402
from cuda_hipify.core.action import HipifyAction  # noqa: E402
from cuda_hipify.core.conversion_result import ConversionResult  # noqa: E402
from cuda_hipify.core.engine import HipifyEngine  # noqa: E402
from cuda_hipify.enums import ApiType, ConvType, SupportDegree  # noqa: E402
from cuda_hipify.rules import RuleEntry, RuleTables  # noqa: E402


def make_entry(
  name: str,
  hip: str,
  roc: str = "",
  api: ApiType = ApiType.RUNTIME,
  conv: ConvType = ConvType.TYPE,
  support: SupportDegree = SupportDegree.FULL,
) -> RuleEntry:
  return RuleEntry(source_name=name, hip_name=hip, roc_name=roc, api_type=api, conv_type=conv, support=support)


def build_rules() -> RuleTables:
  renames = [
    make_entry("cudaMalloc", "hipMalloc", conv=ConvType.MEMORY),
    make_entry("cudaFree", "hipFree", conv=ConvType.MEMORY),
    make_entry("cudaMemcpy", "hipMemcpy", conv=ConvType.MEMORY),
    make_entry("cudaMemcpyHostToDevice", "hipMemcpyHostToDevice", conv=ConvType.NUMERIC_LITERAL),
    make_entry("cudaError_t", "hipError_t"),
    make_entry("cudaSuccess", "hipSuccess", conv=ConvType.NUMERIC_LITERAL),
    make_entry("cudaThreadSynchronize", "hipDeviceSynchronize", conv=ConvType.DEVICE, support=SupportDegree.DEPRECATED),
    make_entry(
      "cudaStreamAttachMemAsync", "hipStreamAttachMemAsync", conv=ConvType.STREAM, support=SupportDegree.UNSUPPORTED
    ),
    make_entry("cuInit", "hipInit", api=ApiType.DRIVER, conv=ConvType.INIT),
    make_entry("cuFoo", "hipFoo", api=ApiType.DRIVER),
    # Same spelling as the stems of curand.h and cuComplex.h.
    make_entry("curand", "hiprand", api=ApiType.RAND, conv=ConvType.DEVICE_FUNC),
    make_entry("cuComplex", "hipComplex", api=ApiType.COMPLEX),
    make_entry("cublasCreate", "hipblasCreate", roc="rocblas_create_handle", api=ApiType.BLAS, conv=ConvType.MATH),
    make_entry(
      "cublasSgemmEx",
      "hipblasSgemmEx",
      roc="rocblas_gemm_ex",
      api=ApiType.BLAS,
      conv=ConvType.MATH,
      support=SupportDegree.HIP_UNSUPPORTED,
    ),
    make_entry(
      "cublasXtInit",
      "hipblasXtInit",
      roc="rocblas_xt_init",
      api=ApiType.BLAS,
      conv=ConvType.MATH,
      support=SupportDegree.ROC_UNSUPPORTED,
    ),
  ]
  includes = [
    make_entry("cuda_runtime.h", "hip/hip_runtime.h", conv=ConvType.INCLUDE_MAIN),
    make_entry("cuda.h", "hip/hip_runtime.h", api=ApiType.DRIVER, conv=ConvType.INCLUDE_MAIN),
    make_entry("cuda_runtime_api.h", "hip/hip_runtime_api.h", conv=ConvType.INCLUDE),
    make_entry("device_launch_parameters.h", "", conv=ConvType.INCLUDE),
    make_entry(
      "cuda_gl_interop.h", "hip/hip_gl_interop.h", conv=ConvType.INCLUDE, support=SupportDegree.UNSUPPORTED
    ),
    make_entry("cublas_v2.h", "hipblas.h", roc="rocblas.h", api=ApiType.BLAS, conv=ConvType.INCLUDE_MAIN),
    make_entry("cublas.h", "hipblas.h", roc="rocblas.h", api=ApiType.BLAS, conv=ConvType.INCLUDE_MAIN),
    make_entry("cuComplex.h", "hip/hip_complex.h", api=ApiType.COMPLEX, conv=ConvType.INCLUDE_MAIN),
    make_entry("curand.h", "hiprand.h", api=ApiType.RAND, conv=ConvType.INCLUDE_MAIN),
    make_entry("curand_kernel.h", "hiprand_kernel.h", api=ApiType.RAND, conv=ConvType.INCLUDE_MAIN),
    make_entry("curand_discrete.h", "hiprand_kernel.h", api=ApiType.RAND, conv=ConvType.INCLUDE),
    make_entry("curand_mtgp32.h", "hiprand_mtgp32.h", api=ApiType.RAND, conv=ConvType.INCLUDE),
  ]
  device_functions = [
    make_entry("__nanosleep", "__builtin_amdgcn_s_sleep", conv=ConvType.DEVICE_FUNC),
    make_entry("__prof_trigger", "__prof_trigger", conv=ConvType.DEVICE_FUNC, support=SupportDegree.UNSUPPORTED),
  ]
  return RuleTables.from_entries(renames=renames, includes=includes, device_functions=device_functions)


@pytest.fixture
def rules() -> RuleTables:
  return build_rules()


@pytest.fixture
def config() -> RuntimeConfig:
  return RuntimeConfig()


@pytest.fixture
def engine(rules: RuleTables) -> HipifyEngine:
  return HipifyEngine(RuntimeConfig(), rules=rules)


@pytest.fixture
def hipify(rules: RuleTables) -> Callable[..., ConversionResult]:
  """
  Converts a snippet with the test rule table.

  Keyword arguments are forwarded to `RuntimeConfig`.
  """

  def _run(code: str, **config_kwargs) -> ConversionResult:
    engine = HipifyEngine(RuntimeConfig(**config_kwargs), rules=rules)
    return engine.run(code, file_name="test.cu")

  return _run


@pytest.fixture
def make_action(rules: RuleTables) -> Callable[..., HipifyAction]:
  """Builds a bare `HipifyAction` over `text` for driving callbacks by hand."""

  def _make(text: str, **config_kwargs) -> HipifyAction:
    return HipifyAction(text, rules, RuntimeConfig(**config_kwargs), file_name="test.cu")

  return _make
