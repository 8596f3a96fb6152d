"""Model-specific CRUD singletons."""

from car_repair.boundary.db.CRUD.queue_job_crud import QueueJobCRUD, queue_job_crud
from car_repair.boundary.db.CRUD.report_crud import ReportCRUD, report_crud
from car_repair.boundary.db.CRUD.task_crud import TaskCRUD, task_crud
from car_repair.boundary.db.CRUD.task_status_crud import TaskStatusCRUD, task_status_crud
from car_repair.boundary.db.CRUD.user_token_crud import UserTokenCRUD, user_token_crud

__all__ = [
    "QueueJobCRUD",
    "ReportCRUD",
    "TaskCRUD",
    "TaskStatusCRUD",
    "UserTokenCRUD",
    "queue_job_crud",
    "report_crud",
    "task_crud",
    "task_status_crud",
    "user_token_crud",
]
