from clinical_report.data.loader import DatasetLoader, DATASET_REGISTRY
from clinical_report.data.preprocessor import Preprocessor

__all__ = ["DatasetLoader", "DATASET_REGISTRY", "Preprocessor"]
