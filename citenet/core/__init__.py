from .models import (
    Paper, Citation, CitationType, EdgeType, NetworkNode, NetworkEdge,
    NetworkGraph, NetworkStats, SimilarityBreakdown, SimilarityResult
)
from .config import (
    CitenetConfig, SimilarityWeights, NetworkBuilderOptions,
    HierarchicalLayoutConfig, ForceLayoutConfig, ProviderConfig, RetryConfig
)
from .errors import (
    CitenetError, ProviderError, RateLimitError, ServerError,
    NetworkError, MissingCredentialsError
)
from .resilience import RequestScheduler, execute_with_retry, backoff_delay, setup_logging
