from .discogs import DiscogsClient
from .normalizer import OpenAINormalizer, PassthroughNormalizer
from .pipeline import EstimationPipeline
from .pricing import estimate_price, select_candidate


__all__ = [
    "DiscogsClient",
    "EstimationPipeline",
    "OpenAINormalizer",
    "PassthroughNormalizer",
    "estimate_price",
    "select_candidate",
]
