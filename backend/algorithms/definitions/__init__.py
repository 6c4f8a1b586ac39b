from .cv_risk import CV_RISK_ALGORITHM
from .combined_cv_risk import COMBINED_CV_RISK_ALGORITHM

BUILTIN_ALGORITHMS = [CV_RISK_ALGORITHM, COMBINED_CV_RISK_ALGORITHM]

__all__ = ["BUILTIN_ALGORITHMS", "CV_RISK_ALGORITHM", "COMBINED_CV_RISK_ALGORITHM"]
