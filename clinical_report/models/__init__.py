from clinical_report.models.trainer import ModelTrainer, MODEL_CONFIGS
from clinical_report.models.tuning import HyperparameterTuner, PARAM_GRIDS, PARAM_DISTRIBUTIONS

__all__ = [
    "ModelTrainer",
    "MODEL_CONFIGS",
    "HyperparameterTuner",
    "PARAM_GRIDS",
    "PARAM_DISTRIBUTIONS",
]
