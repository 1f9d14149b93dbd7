from column_advisor.divergent.design import DivergentConfig, DivergentDesign, least_cost_replicas

__all__ = ["DivergentConfig", "DivergentDesign", "least_cost_replicas"]
