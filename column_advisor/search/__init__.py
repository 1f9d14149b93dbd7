from column_advisor.search.annealer import AnnealConfig, AnnealState, SimulatedAnnealer, validate_problem
from column_advisor.search.exhaustive import exhaustive_search, search_space_size
from column_advisor.search.neighbors import draw_move, move_for_seed, neighbor

__all__ = [
    "AnnealConfig",
    "AnnealState",
    "SimulatedAnnealer",
    "draw_move",
    "exhaustive_search",
    "move_for_seed",
    "neighbor",
    "search_space_size",
    "validate_problem",
]
