from .handler import Cha2ds2VascCalculator

__all__ = ["Cha2ds2VascCalculator"]
