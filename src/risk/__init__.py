from .health import HealthReport, score_health

__all__ = ["HealthReport", "score_health"]
