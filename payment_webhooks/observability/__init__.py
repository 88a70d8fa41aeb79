from .metrics import MetricsCollector
from .alerting import AlertManager

__all__ = ["MetricsCollector", "AlertManager"]
