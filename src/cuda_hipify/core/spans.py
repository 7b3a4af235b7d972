"""
Macro-Aware Span Resolution.

A logical `SourceRange` can map to different physical text depending on
whether it is being read or overwritten, because macro expansion makes the
same tokens appear both at the expansion site and in the macro definition.

- `read_range`: where to copy text from. File positions are used only when
  both edges are safe (outside a macro body, or at the matching edge of the
  expansion); otherwise the spelled text is used.
- `write_range`: where to apply a patch. If either edge lies outside a macro
  body the patch goes to the file positions; only a range entirely inside a
  macro body patches the macro definition.
"""

from cuda_hipify.frontend.nodes import CharRange, SourceRange


def read_range(source_range: SourceRange) -> CharRange:
  """
  Resolves a logical range to the physical span that is safe to read.

  Args:
      source_range: The logical range.

  Returns:
      CharRange: Half-open span in the main file.
  """
  begin, end = source_range.begin, source_range.end
  begin_safe = not begin.in_macro_body or begin.at_macro_start
  end_safe = not end.in_macro_body or end.at_macro_end

  if begin_safe and end_safe:
    return CharRange(begin.file_offset, end.file_offset)
  return CharRange(begin.spelling, end.spelling)


def write_range(source_range: SourceRange) -> CharRange:
  """
  Resolves a logical range to the physical span that is safe to overwrite.

  Args:
      source_range: The logical range.

  Returns:
      CharRange: Half-open span in the main file.
  """
  begin, end = source_range.begin, source_range.end
  if not begin.in_macro_body or not end.in_macro_body:
    return CharRange(begin.file_offset, end.file_offset)
  return CharRange(begin.spelling, end.spelling)
