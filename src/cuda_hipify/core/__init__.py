"""
Core Package.

Contains the conversion logic:
- Engine and result model
- Per-file action and rewriter mixins
- Patch ledger, span resolution, statistics and diagnostics
"""
