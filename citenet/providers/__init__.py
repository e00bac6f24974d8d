# providers - external paper data sources
from .base import PaperProvider, ExpansionResult, PaperNetwork
from .semantic_scholar import SemanticScholarProvider
