"""
FastAPI routers.
"""
from briefcast.routers.health import router as health_router
from briefcast.routers.jobs import router as jobs_router
from briefcast.routers.users import router as users_router
from briefcast.routers.cron import router as cron_router

__all__ = ['health_router', 'jobs_router', 'users_router', 'cron_router']
