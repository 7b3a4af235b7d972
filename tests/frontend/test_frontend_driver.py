"""
Tests for the frontend driver event sequencing.

Verifies:
1. All tokens are delivered before any preprocessing event or match.
2. Preprocessing events and matches are interleaved by file offset.
3. End of file is signalled last, with the controlling macro.
"""

from cuda_hipify.core.callbacks import HipifyCallbacks
from cuda_hipify.frontend import run_frontend


class RecordingCallbacks(HipifyCallbacks):
  def __init__(self):
    self.events = []

  def on_token(self, token):
    self.events.append(("token", token.text))

  def on_inclusion_directive(self, directive):
    self.events.append(("include", directive.file_name))

  def on_pragma(self, pragma):
    self.events.append(("pragma", pragma.text))

  def on_ifndef(self, directive):
    self.events.append(("ifndef", directive.macro_name))

  def on_match(self, match):
    kind = "launch" if match.kernel_launch else "shared" if match.shared_var else "call"
    self.events.append(("match", kind))

  def on_end_of_file(self, controlling_macro):
    self.events.append(("eof", controlling_macro))


CODE = """#ifndef K_H
#define K_H
#pragma once
#include <cuda_runtime.h>
__global__ void k(float* x) { extern __shared__ float s[]; }
void run() { k<<<1, 1>>>(0); }
#include "late.h"
#endif
"""


def test_event_sequence():
  rec = RecordingCallbacks()
  run_frontend(CODE, rec)

  kinds = [kind for kind, _ in rec.events]
  first_structural = kinds.index("ifndef")
  assert set(kinds[:first_structural]) == {"token"}
  assert "token" not in kinds[first_structural:]

  structural = [e for e in rec.events if e[0] != "token"]
  assert structural == [
    ("ifndef", "K_H"),
    ("pragma", "once"),
    ("include", "cuda_runtime.h"),
    ("match", "shared"),
    ("match", "launch"),
    ("include", "late.h"),
    ("eof", "K_H"),
  ]


def test_tokens_cover_directives_and_comments():
  rec = RecordingCallbacks()
  run_frontend("// cudaMalloc\n#include <cuda.h>\n", rec)
  tokens = [text for kind, text in rec.events if kind == "token"]
  assert tokens == ["// cudaMalloc", "#include", "<cuda.h>"]


def test_device_function_names_are_forwarded():
  rec = RecordingCallbacks()
  run_frontend("__global__ void k() { __nanosleep(1); }", rec, device_functions=frozenset({"__nanosleep"}))
  assert ("match", "call") in rec.events

  rec = RecordingCallbacks()
  run_frontend("__global__ void k() { __nanosleep(1); }", rec)
  assert ("match", "call") not in rec.events


def test_empty_input():
  rec = RecordingCallbacks()
  run_frontend("", rec)
  assert rec.events == [("eof", None)]
