from .load_parameters import ParameterLoader

__all__ = ["ParameterLoader"]
