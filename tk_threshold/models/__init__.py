from .steady_state import SteadyStateModel

__all__ = ["SteadyStateModel"]
