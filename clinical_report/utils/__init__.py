from clinical_report.utils.logger import get_logger, set_log_level

__all__ = ["get_logger", "set_log_level"]
