from .handler import Das28Calculator

__all__ = ["Das28Calculator"]
