from .appointment import Appointment, AppointmentStatus, AppointmentType, BlockedPeriod, AgendaItem, Slot
from .clinic import Clinic
from .animal import Animal
from .user import User, UserClinicRole
from .reminder import ReminderRule, ReminderInstance, NotificationLog

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "AppointmentType",
    "BlockedPeriod",
    "AgendaItem",
    "Slot",
    "Clinic",
    "Animal",
    "User",
    "UserClinicRole",
    "ReminderRule",
    "ReminderInstance",
    "NotificationLog",
]
