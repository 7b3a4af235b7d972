"""
CLI Command Handlers Facade.

Re-exports the handlers from `cuda_hipify.cli.handlers` for the dispatcher.
"""

from cuda_hipify.cli.handlers.convert import handle_convert
from cuda_hipify.cli.handlers.lookup import handle_lookup

__all__ = ["handle_convert", "handle_lookup"]
