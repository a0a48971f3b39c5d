__version__ = "0.1.0"

from clamm_paths.core import (
    BaseAdapter,
    ExactInputQuotation,
    ExactOutputQuotation,
    Hop,
    Pool,
    Position,
    Quotation,
    QuoteKind,
    Token,
)
from clamm_paths.routing import (
    QuotationPipeline,
    QuoteAggregator,
    QuoteEmpty,
    QuoteFailed,
    QuoteSuccess,
    StaticPathDirectory,
)

__all__ = [
    "__version__",
    "BaseAdapter",
    "ExactInputQuotation",
    "ExactOutputQuotation",
    "Hop",
    "Pool",
    "Position",
    "Quotation",
    "QuoteKind",
    "Token",
    "QuotationPipeline",
    "QuoteAggregator",
    "QuoteEmpty",
    "QuoteFailed",
    "QuoteSuccess",
    "StaticPathDirectory",
]
