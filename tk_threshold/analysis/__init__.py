from .exceedance import ExceedanceAnalysis
from .risk_assessment import ThresholdRiskAssessment

__all__ = ["ExceedanceAnalysis", "ThresholdRiskAssessment"]
