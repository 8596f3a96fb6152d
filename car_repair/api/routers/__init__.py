"""API routers."""

from car_repair.api.routers.direct_access import router as direct_access_router
from car_repair.api.routers.health import router as health_router
from car_repair.api.routers.jobs import router as jobs_router
from car_repair.api.routers.payments import router as payments_router
from car_repair.api.routers.tasks import router as tasks_router

__all__ = ["direct_access_router", "health_router", "jobs_router", "payments_router", "tasks_router"]
