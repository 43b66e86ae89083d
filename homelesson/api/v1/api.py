"""
API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from homelesson.api.v1.endpoints import (analytics, attendance, auth, payroll,
                                         reports, settings, subjects,
                                         teachers, timetable)

api_router = APIRouter()

api_router.include_router(auth.router)

# Domain entities
api_router.include_router(teachers.router)
api_router.include_router(subjects.router)
api_router.include_router(timetable.router)
api_router.include_router(attendance.router)
api_router.include_router(payroll.router)

# Analytics, reports, export, health
api_router.include_router(analytics.router)
api_router.include_router(reports.router)

# Admin configuration
api_router.include_router(settings.router)
