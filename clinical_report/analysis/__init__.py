from clinical_report.analysis.explorer import DataExplorer

__all__ = ["DataExplorer"]
