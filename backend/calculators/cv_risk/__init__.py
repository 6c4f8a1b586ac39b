from .handler import CvRiskCalculator
from .combined import CombinedCvRiskCalculator

__all__ = ["CvRiskCalculator", "CombinedCvRiskCalculator"]
