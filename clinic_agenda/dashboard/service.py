"""
Dashboard Service - the figures shown on the clinic's home screen.
"""
import datetime as dt
from typing import List

from ..appointments.schemas import Appointment, AppointmentStatus
from ..core.backend import ClinicBackend
from ..core.schemas import CamelModel

# Days covered by the "upcoming" counter, today included
UPCOMING_WINDOW_DAYS = 7


class DashboardSummary(CamelModel):
    total_patients: int
    appointments_today: int
    upcoming_scheduled: int
    todays_appointments: List[Appointment]


def build_summary(backend: ClinicBackend, now: dt.datetime) -> DashboardSummary:
    """
    Compute the dashboard figures.

    Args:
        backend: Collection services to read from
        now: Current time, timezone-aware, in the clinic timezone

    Returns:
        DashboardSummary: Patient count, today's appointments in ascending
        order, and the number of scheduled appointments from the start of
        today through the end of the sixth day after it
    """
    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    window_end = start_of_today + dt.timedelta(days=UPCOMING_WINDOW_DAYS)

    appointments = backend.appointments.list()
    todays = [a for a in appointments if a.date.astimezone(now.tzinfo).date() == now.date()]
    upcoming = [
        a for a in appointments
        if a.status == AppointmentStatus.SCHEDULED and start_of_today <= a.date < window_end
    ]

    return DashboardSummary(
        total_patients=len(backend.patients.list()),
        appointments_today=len(todays),
        upcoming_scheduled=len(upcoming),
        todays_appointments=todays,
    )
