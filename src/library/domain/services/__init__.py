from .fine_calculator import calculate_fine, days_overdue

__all__ = ["calculate_fine", "days_overdue"]
