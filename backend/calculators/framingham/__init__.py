from .handler import FraminghamCalculator

__all__ = ["FraminghamCalculator"]
