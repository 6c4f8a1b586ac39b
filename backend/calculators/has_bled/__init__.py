from .handler import HasBledCalculator

__all__ = ["HasBledCalculator"]
