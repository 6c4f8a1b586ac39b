from .handler import Fib4Calculator

__all__ = ["Fib4Calculator"]
