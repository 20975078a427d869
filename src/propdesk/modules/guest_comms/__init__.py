from propdesk.modules.guest_comms.comms import GuestCommunicator

__all__ = ["GuestCommunicator"]
