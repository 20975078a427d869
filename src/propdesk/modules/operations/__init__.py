from propdesk.modules.operations.ops import OperationsManager, operations_manager, schedule_cleaning_job

__all__ = ["OperationsManager", "operations_manager", "schedule_cleaning_job"]
