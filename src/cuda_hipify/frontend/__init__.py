"""
CUDA Source Frontend.

A tree-sitter adapter that turns source text into the token stream,
preprocessing events and structural matches consumed by the rewriting core.
"""

from cuda_hipify.frontend.driver import run_frontend
from cuda_hipify.frontend.tokens import RawLexer, Token, TokenKind

__all__ = ["RawLexer", "Token", "TokenKind", "run_frontend"]
