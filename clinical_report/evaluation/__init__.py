from clinical_report.evaluation.evaluator import ModelEvaluator, compare_resamples
from clinical_report.evaluation.reporter import Reporter

__all__ = ["ModelEvaluator", "Reporter", "compare_resamples"]
