from column_advisor.cost import CostModel, SpanScanCostModel
from column_advisor.divergent import DivergentConfig, DivergentDesign
from column_advisor.errors import AdvisorError, ConfigurationError, DegenerateNeighborError
from column_advisor.search import AnnealConfig, SimulatedAnnealer, exhaustive_search
from column_advisor.types import MultiReplicas, Query, Replica, Table

__all__ = [
    "AdvisorError",
    "AnnealConfig",
    "ConfigurationError",
    "CostModel",
    "DegenerateNeighborError",
    "DivergentConfig",
    "DivergentDesign",
    "MultiReplicas",
    "Query",
    "Replica",
    "SimulatedAnnealer",
    "SpanScanCostModel",
    "Table",
    "exhaustive_search",
]
