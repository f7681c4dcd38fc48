"""
Dashboard Router - summary figures for the home screen.
"""
import datetime as dt

from fastapi import APIRouter, Depends, Request

from ..core.backend import ClinicBackend
from ..dependencies import get_backend, get_current_user
from ..users.schemas import User
from .service import DashboardSummary, build_summary

router = APIRouter()


@router.get("/summary", response_model=DashboardSummary)
def get_summary(
    request: Request,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Get patient and appointment counts for today and the coming week
    """
    now = dt.datetime.now(request.app.state.clinic_tz)
    return build_summary(backend, now)
