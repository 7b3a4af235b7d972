"""
Tests for the Patch Ledger.

Verifies:
1. Non-overlapping patches are applied against the original text.
2. Overlapping and out-of-bounds patches are rejected and recorded.
3. Insertions at the edge of a replacement are accepted; inside one they are not.
4. Duplicates are no-ops and insertions keep their emission order.
5. `render` and `absorb` let an enclosing patch fold in the patches inside it.
6. Statistics are updated per accepted patch.
"""

from cuda_hipify.core.ledger import PatchLedger, Replacement
from cuda_hipify.core.statistics import Statistics

TEXT = "abcdefghij"


# --- Acceptance ---


def test_apply_non_overlapping():
  ledger = PatchLedger(TEXT)
  assert ledger.add(Replacement(2, 3, "X"))
  assert ledger.add(Replacement(7, 1, "YY"))
  assert ledger.apply() == "abXfgYYij"
  assert len(ledger) == 2


def test_adjacent_replacements():
  ledger = PatchLedger(TEXT)
  assert ledger.add(Replacement(5, 1, "Z"))
  assert ledger.add(Replacement(2, 3, "X"))
  assert ledger.apply() == "abXZghij"
  assert [r.offset for r in ledger.replacements] == [2, 5]


def test_overlap_rejected():
  ledger = PatchLedger(TEXT)
  assert ledger.add(Replacement(2, 3, "X"))
  assert not ledger.add(Replacement(4, 2, "Y"))
  assert not ledger.add(Replacement(0, 3, "W"))
  assert not ledger.add(Replacement(1, 6, "V"))
  assert ledger.rejected == [Replacement(4, 2, "Y"), Replacement(0, 3, "W"), Replacement(1, 6, "V")]
  assert ledger.apply() == "abXfghij"


def test_out_of_bounds_rejected():
  ledger = PatchLedger(TEXT)
  assert not ledger.add(Replacement(8, 5, ""))
  assert not ledger.add(Replacement(-1, 1, ""))
  assert len(ledger) == 0
  assert len(ledger.rejected) == 2


def test_insertion_at_end_of_file():
  ledger = PatchLedger(TEXT)
  assert ledger.add(Replacement(10, 0, "!"))
  assert ledger.apply() == "abcdefghij!"


# --- Insertions ---


def test_insertions_at_replacement_edges():
  ledger = PatchLedger(TEXT)
  ledger.add(Replacement(2, 3, "X"))
  assert ledger.add(Replacement(2, 0, "<"))
  assert ledger.add(Replacement(5, 0, ">"))
  assert ledger.apply() == "ab<X>fghij"


def test_insertion_inside_replacement_rejected():
  ledger = PatchLedger(TEXT)
  ledger.add(Replacement(2, 3, "X"))
  assert not ledger.add(Replacement(3, 0, "!"))


def test_replacement_over_insertion_rejected():
  ledger = PatchLedger(TEXT)
  ledger.add(Replacement(3, 0, "!"))
  assert not ledger.add(Replacement(2, 3, "X"))
  assert ledger.add(Replacement(3, 2, "Y"))
  assert ledger.apply() == "abc!Yfghij"


def test_insertions_keep_emission_order():
  ledger = PatchLedger(TEXT)
  ledger.add(Replacement(0, 1, "A"))
  ledger.add(Replacement(0, 0, "1"))
  ledger.add(Replacement(0, 0, "2"))
  assert ledger.apply() == "12Abcdefghij"


def test_duplicate_is_noop():
  ledger = PatchLedger(TEXT)
  assert ledger.add(Replacement(2, 3, "X"))
  assert ledger.add(Replacement(2, 3, "X"))
  assert len(ledger) == 1
  assert ledger.rejected == []
  assert ledger.statistics.replacements == 1


# --- Render & Absorb ---


def test_render_applies_inner_patches():
  ledger = PatchLedger(TEXT)
  ledger.add(Replacement(3, 2, "XY"))
  ledger.add(Replacement(8, 1, "Z"))
  assert ledger.render(2, 6) == "cXYf"
  assert ledger.render(0, 3) == "abc"
  assert ledger.render(4, 9) == "efghZ"


def test_render_skips_edge_insertions():
  ledger = PatchLedger(TEXT)
  ledger.add(Replacement(2, 0, "<"))
  ledger.add(Replacement(4, 0, "!"))
  ledger.add(Replacement(6, 0, ">"))
  assert ledger.render(2, 6) == "cd!ef"


def test_absorb_folds_contained_patches():
  ledger = PatchLedger(TEXT)
  ledger.add(Replacement(3, 1, "D"))
  ledger.add(Replacement(5, 1, "F"))
  text = f"[{ledger.render(2, 7)}]"
  assert ledger.add(Replacement(2, 5, text), absorb=True)
  assert ledger.replacements == [Replacement(2, 5, "[cDeFg]")]
  assert ledger.apply() == "ab[cDeFg]hij"


def test_absorb_keeps_insertion_at_start():
  ledger = PatchLedger(TEXT)
  ledger.add(Replacement(2, 0, "^"))
  ledger.add(Replacement(3, 1, "D"))
  assert ledger.add(Replacement(2, 3, "<cDe>"), absorb=True)
  assert ledger.apply() == "ab^<cDe>fghij"


def test_absorb_still_rejects_crossing_patch():
  ledger = PatchLedger(TEXT)
  ledger.add(Replacement(4, 3, "X"))
  assert not ledger.add(Replacement(2, 4, "Y"), absorb=True)
  assert ledger.apply() == "abcdXhij"


def test_without_absorb_contained_patch_conflicts():
  ledger = PatchLedger(TEXT)
  ledger.add(Replacement(3, 1, "D"))
  assert not ledger.add(Replacement(2, 5, "Q"))


# --- Statistics ---


def test_statistics_per_accepted_patch():
  stats = Statistics()
  ledger = PatchLedger("one\ntwo\nthree\n", stats)
  ledger.add(Replacement(0, 3, "ONE"))
  ledger.add(Replacement(4, 0, "// "))
  ledger.add(Replacement(5, 2, "WO"))
  ledger.add(Replacement(1, 1, "x"))

  assert stats.replacements == 3
  assert stats.lines_touched == 2
  assert stats.bytes_changed == 5
