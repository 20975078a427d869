from propdesk.modules.reservation_sync.sync import ReservationSyncer, SyncResult

__all__ = ["ReservationSyncer", "SyncResult"]
