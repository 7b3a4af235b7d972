"""
Tests for the Structural Rewriter.

Verifies:
1. Kernel launches become `hipLaunchKernelGGL` calls with defaulted config.
2. Template kernels are parenthesized; renames inside a launch survive.
3. Launches written inside a macro body patch the macro definition.
4. Extern shared incomplete arrays become `HIP_DYNAMIC_SHARED` with canonical builtin names.
5. Device calls are renamed only for device/global (non-host) callees.
6. Match resolution follows a fixed priority and reports the handling kind.
"""

import pytest

from cuda_hipify.core.rewriter.structural import MatchKind, builtin_type_name
from cuda_hipify.enums import ConvType
from cuda_hipify.frontend.nodes import (
  ATTR_DEVICE,
  ATTR_GLOBAL,
  ATTR_HOST,
  ATTR_SHARED,
  CallExpr,
  Expr,
  FunctionDecl,
  KernelLaunchExpr,
  MatchResult,
  QualType,
  SourceLocation,
  SourceRange,
  VarDecl,
)

RUNTIME = "\n#include <hip/hip_runtime.h>\n"


# --- Kernel Launches ---


def test_launch_defaults_stream_and_shared_memory(hipify):
  code = "__global__ void kernel(int a, int b);\nvoid run() { kernel<<<grid, block>>>(a, b); }\n"
  res = hipify(code)
  assert res.code == RUNTIME + (
    "__global__ void kernel(int a, int b);\nvoid run() { hipLaunchKernelGGL(kernel, dim3(grid), dim3(block), 0, 0, a, b); }\n"
  )
  assert res.statistics.name_counts == {"hipLaunchKernelGGL": 1}
  assert res.statistics.conv_counts == {ConvType.EXECUTION: 1}


@pytest.mark.parametrize(
  "launch, expected",
  [
    ("k<<<g, b, shm, s>>>(p);", "hipLaunchKernelGGL(k, dim3(g), dim3(b), shm, s, p);"),
    ("k<<<g, b, shm>>>();", "hipLaunchKernelGGL(k, dim3(g), dim3(b), shm, 0);"),
    ("k<<<dim3(4, 4), 256>>>(x);", "hipLaunchKernelGGL(k, dim3(dim3(4, 4)), dim3(256), 0, 0, x);"),
    ("k<<<1, 1>>>(a,\n    b);", "hipLaunchKernelGGL(k, dim3(1), dim3(1), 0, 0, a,\n    b);"),
  ],
)
def test_launch_forms(hipify, launch, expected):
  assert hipify(launch).code == RUNTIME + expected


def test_template_launch_is_parenthesized(hipify):
  code = "template <typename T> __global__ void scale(T* x);\nvoid run() { scale<float><<<1, 64>>>(x); }\n"
  assert "hipLaunchKernelGGL((scale<float>), dim3(1), dim3(64), 0, 0, x)" in hipify(code).code


def test_nested_template_launch_is_parenthesized(hipify):
  res = hipify("void run() { k<V<W<int>>><<<g, b>>>(a); }\n")
  assert res.code == RUNTIME + "void run() { hipLaunchKernelGGL((k<V<W<int>>>), dim3(g), dim3(b), 0, 0, a); }\n"
  assert res.rejected == []


def test_renames_inside_launch_are_kept(hipify):
  res = hipify("k<<<g, b, 0, stream>>>(cudaSuccess, cudaMemcpyHostToDevice);\n")
  assert res.code == RUNTIME + "hipLaunchKernelGGL(k, dim3(g), dim3(b), 0, stream, hipSuccess, hipMemcpyHostToDevice);\n"
  assert res.rejected == []


def test_custom_launch_macro(hipify):
  assert hipify("k<<<1, 2>>>();", launch_macro="LAUNCH").code == RUNTIME + "LAUNCH(k, dim3(1), dim3(2), 0, 0);"


def _mloc(file_offset, spelling, start=False, end=False) -> SourceLocation:
  return SourceLocation(
    file_offset=file_offset, spelling_offset=spelling, in_macro_body=True, at_macro_start=start, at_macro_end=end
  )


def test_launch_in_macro_body_patches_definition(make_action):
  text = "#define LAUNCH k<<<g, b>>>(x)\nLAUNCH;\n"
  body = text.index("k<<<")
  use = text.index("LAUNCH;")

  def piece(name: str, start=False, end=False) -> SourceRange:
    pos = text.index(name, body)
    return SourceRange(_mloc(use, pos, start=start), _mloc(use, pos + len(name), end=end))

  launch = KernelLaunchExpr(
    range=SourceRange(_mloc(use, body, start=True), _mloc(use + 6, text.index("\n"), end=True)),
    callee=Expr(piece("k", start=True)),
    callee_decl=FunctionDecl("k", frozenset({ATTR_GLOBAL})),
    config=[Expr(piece("g")), Expr(piece("b")), Expr.default_arg(), Expr.default_arg()],
    args=[Expr(piece("x"))],
  )
  action = make_action(text)
  assert action.run_match(MatchResult(kernel_launch=launch)) == MatchKind.KERNEL_LAUNCH
  assert action.ledger.apply() == "#define LAUNCH hipLaunchKernelGGL(k, dim3(g), dim3(b), 0, 0, x)\nLAUNCH;\n"


@pytest.mark.parametrize(
  "launch",
  [
    KernelLaunchExpr(range=SourceRange.of(0, 5), callee=None, callee_decl=FunctionDecl("k"), config=[]),
    KernelLaunchExpr(range=SourceRange.of(0, 5), callee=Expr(SourceRange.of(0, 1)), callee_decl=None, config=[]),
    KernelLaunchExpr(
      range=SourceRange.of(0, 5),
      callee=Expr(SourceRange.of(0, 1)),
      callee_decl=FunctionDecl("k"),
      config=[Expr(SourceRange.of(2, 3))],
    ),
  ],
)
def test_incomplete_launch_declines(make_action, launch):
  action = make_action("k<<<>>>")
  assert action.run_match(MatchResult(kernel_launch=launch)) is None
  assert len(action.ledger) == 0


# --- Shared Arrays ---


@pytest.mark.parametrize(
  "decl, expected",
  [
    ("extern __shared__ float s[];", "HIP_DYNAMIC_SHARED(float, s);"),
    ("extern __shared__ unsigned buf[];", "HIP_DYNAMIC_SHARED(unsigned int, buf);"),
    ("extern __shared__ long int counts[];", "HIP_DYNAMIC_SHARED(long, counts);"),
    ("extern __shared__ __fp16 h[];", "HIP_DYNAMIC_SHARED(half, h);"),
    ("extern __shared__ Pair pairs[];", "HIP_DYNAMIC_SHARED(Pair, pairs);"),
    ("__shared__ float s[];", "__shared__ float s[];"),
    ("__shared__ float tile[32];", "__shared__ float tile[32];"),
  ],
)
def test_shared_arrays(hipify, decl, expected):
  code = f"__global__ void k() {{\n  {decl}\n}}\n"
  assert hipify(code).code == RUNTIME + f"__global__ void k() {{\n  {expected}\n}}\n"


def test_fp16_without_extension_names(hipify):
  code = "extern __shared__ __fp16 h[];\n"
  assert hipify(code, extension_type_names=False).code == RUNTIME + "HIP_DYNAMIC_SHARED(__fp16, h);\n"


def test_unknown_builtin_spelling_is_skipped(make_action):
  var = VarDecl(
    name="v",
    outer_begin=SourceLocation.at(0),
    type_end=SourceLocation.at(25),
    type=QualType(
      spelling="__vector int []",
      is_incomplete_array=True,
      element_type=QualType(spelling="__vector int", is_builtin=True),
    ),
    has_external_linkage=True,
    attributes=frozenset({ATTR_SHARED}),
  )
  action = make_action("extern __shared__ __vector int v[];")
  assert action.run_match(MatchResult(shared_var=var)) == MatchKind.SHARED_ARRAY
  assert len(action.ledger) == 0
  assert action.diagnostics.diagnostics == []


@pytest.mark.parametrize(
  "spelling, expected",
  [
    ("unsigned", "unsigned int"),
    ("int unsigned", "unsigned int"),
    ("signed", "int"),
    ("long long int", "long long"),
    ("unsigned long int", "unsigned long"),
    ("const float", "float"),
    ("_Bool", "bool"),
    ("__fp16", "half"),
    ("float3", ""),
  ],
)
def test_builtin_type_name(spelling, expected):
  assert builtin_type_name(spelling) == expected


def test_builtin_type_name_without_extensions():
  assert builtin_type_name("__fp16", extension_type_names=False) == "__fp16"


# --- Device Calls ---


def test_device_call_renamed(hipify):
  code = "__global__ void k() { __nanosleep(100); }\n"
  assert hipify(code).code == RUNTIME + "__global__ void k() { __builtin_amdgcn_s_sleep(100); }\n"


def test_unsupported_device_call(hipify):
  code = "__global__ void k() { __prof_trigger(1); }\n"
  res = hipify(code)
  assert res.code == RUNTIME + code
  assert [d.message for d in res.diagnostics] == ["CUDA identifier is unsupported in HIP."]


def _call(attrs, name="__nanosleep") -> MatchResult:
  text = f"{name}(1)"
  return MatchResult(
    device_call=CallExpr(
      range=SourceRange.of(0, len(text)),
      callee_decl=FunctionDecl(name, frozenset(attrs)),
      callee_location=SourceLocation.at(0),
    )
  )


@pytest.mark.parametrize(
  "attrs, kind, patched",
  [
    ({ATTR_DEVICE}, MatchKind.DEVICE_CALL, True),
    ({ATTR_GLOBAL}, MatchKind.DEVICE_CALL, True),
    ({ATTR_HOST, ATTR_DEVICE}, None, False),
    ((), None, False),
  ],
)
def test_device_call_attributes(make_action, attrs, kind, patched):
  action = make_action("__nanosleep(1)")
  assert action.run_match(_call(attrs)) == kind
  assert (len(action.ledger) == 1) is patched


def test_device_call_without_table_entry_is_handled(make_action):
  action = make_action("helper(1)")
  assert action.run_match(_call({ATTR_DEVICE}, name="helper")) == MatchKind.DEVICE_CALL
  assert len(action.ledger) == 0


# --- Priority ---


def test_launch_wins_over_device_call(make_action):
  text = "k<<<1, 1>>>()"
  launch = KernelLaunchExpr(
    range=SourceRange.of(0, len(text)),
    callee=Expr(SourceRange.of(0, 1)),
    callee_decl=FunctionDecl("k", frozenset({ATTR_GLOBAL})),
    config=[Expr(SourceRange.of(4, 5)), Expr(SourceRange.of(7, 8))],
  )
  match = MatchResult(kernel_launch=launch, device_call=_call({ATTR_DEVICE}).device_call)
  action = make_action(text)
  assert action.run_match(match) == MatchKind.KERNEL_LAUNCH
  assert action.ledger.apply() == "hipLaunchKernelGGL(k, dim3(1), dim3(1), 0, 0)"


def test_empty_match(make_action):
  assert make_action("x").run_match(MatchResult()) is None
