from propdesk.modules.rates.projector import CalendarDay, DailyRate, RateProjector, iter_days

__all__ = ["CalendarDay", "DailyRate", "RateProjector", "iter_days"]
