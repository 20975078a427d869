from propdesk.modules.calendar.blocks import AvailabilityReport, CalendarManager

__all__ = ["AvailabilityReport", "CalendarManager"]
