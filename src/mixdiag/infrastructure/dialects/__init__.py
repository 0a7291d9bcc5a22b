from .factory import create_dialect
from .base import Dialect, quote_ident

__all__ = [
    'create_dialect', 'Dialect', 'quote_ident'
]
