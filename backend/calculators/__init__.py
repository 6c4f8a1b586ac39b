from .registry import CalculatorRegistry
from .base import BaseCalculator
from .has_bled import HasBledCalculator
from .cha2ds2_vasc import Cha2ds2VascCalculator
from .fib4 import Fib4Calculator
from .das28 import Das28Calculator
from .framingham import FraminghamCalculator
from .cv_risk import CvRiskCalculator, CombinedCvRiskCalculator

registry = CalculatorRegistry()

registry.register(HasBledCalculator())
registry.register(Cha2ds2VascCalculator())
registry.register(Fib4Calculator())
registry.register(Das28Calculator())
registry.register(FraminghamCalculator())
registry.register(CvRiskCalculator())
registry.register(CombinedCvRiskCalculator())

__all__ = ["registry", "CalculatorRegistry", "BaseCalculator"]
