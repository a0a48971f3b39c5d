from clamm_paths.core.adapters.BaseAdapter import BaseAdapter
from clamm_paths.core.adapters.models import (
    ExactInputQuotation,
    ExactOutputQuotation,
    Hop,
    Pool,
    Position,
    Quotation,
    QuoteKind,
    Token,
)

__all__ = [
    "BaseAdapter",
    "ExactInputQuotation",
    "ExactOutputQuotation",
    "Hop",
    "Pool",
    "Position",
    "Quotation",
    "QuoteKind",
    "Token",
]
