from .registry import AlgorithmRegistry
from .navigator import AlgorithmNavigator
from .definitions import BUILTIN_ALGORITHMS

registry = AlgorithmRegistry()

for _algorithm in BUILTIN_ALGORITHMS:
    registry.register(_algorithm)

__all__ = ["registry", "AlgorithmRegistry", "AlgorithmNavigator"]
