from .convert import handle_convert, print_statistics
from .lookup import handle_lookup

__all__ = ["handle_convert", "handle_lookup", "print_statistics"]
