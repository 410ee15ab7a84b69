"""
Application layer: detectors, rules engine and use cases.
"""

from .rules_engine import PROCESSING_ERROR_LABEL, EvaluationResult, RulesEngine

__all__ = ["EvaluationResult", "PROCESSING_ERROR_LABEL", "RulesEngine"]
