from clamm_paths.routing.aggregator import QuoteAggregator, price_per_token, select_best
from clamm_paths.routing.directory import StaticPathDirectory
from clamm_paths.routing.pipeline import QuotationPipeline
from clamm_paths.routing.types import (
    EmptyReason,
    MultiHopQuote,
    PathDirectory,
    PathQuoteErr,
    PathQuoteOk,
    QuotationState,
    QuoteEmpty,
    QuoteFailed,
    Quoter,
    QuoteResult,
    QuoteSuccess,
    SingleHopQuote,
)

__all__ = [
    "EmptyReason",
    "MultiHopQuote",
    "PathDirectory",
    "PathQuoteErr",
    "PathQuoteOk",
    "QuotationPipeline",
    "QuotationState",
    "QuoteAggregator",
    "QuoteEmpty",
    "QuoteFailed",
    "QuoteResult",
    "QuoteSuccess",
    "Quoter",
    "SingleHopQuote",
    "StaticPathDirectory",
    "price_per_token",
    "select_best",
]
