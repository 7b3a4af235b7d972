"""
Rewriter Package.

The mixins composed into `HipifyAction`:
- Lexical: identifiers and names inside string literals.
- Structural: kernel launches, extern shared arrays, device calls.
- Includes: header substitution and per-category deduplication.
- Guards: include guard tracking and the end-of-file runtime include.
"""

from cuda_hipify.core.rewriter.guards import GuardMixin
from cuda_hipify.core.rewriter.includes import IncludeMixin
from cuda_hipify.core.rewriter.lexical import LexicalMixin
from cuda_hipify.core.rewriter.structural import MatchKind, StructuralMixin

__all__ = ["GuardMixin", "IncludeMixin", "LexicalMixin", "MatchKind", "StructuralMixin"]
