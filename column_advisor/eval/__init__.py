from column_advisor.eval.curves import plot_cost_history

__all__ = ["plot_cost_history"]
