"""ORM models. Importing this package registers every table on Base.metadata."""

from car_repair.boundary.db.models.image_model import (
    IMAGE_TYPE_NAMES,
    ImageModel,
    ImageTypeModel,
)
from car_repair.boundary.db.models.queue_job_model import QueueJobModel, QueueJobStatus
from car_repair.boundary.db.models.report_model import ReportModel
from car_repair.boundary.db.models.task_model import TaskModel
from car_repair.boundary.db.models.task_status_model import (
    TaskStatusHistoryModel,
    TaskStatusModel,
    TaskStatusName,
)
from car_repair.boundary.db.models.user_model import UserModel
from car_repair.boundary.db.models.user_token_model import TokenType, UserTokenModel

__all__ = [
    "IMAGE_TYPE_NAMES",
    "ImageModel",
    "ImageTypeModel",
    "QueueJobModel",
    "QueueJobStatus",
    "ReportModel",
    "TaskModel",
    "TaskStatusHistoryModel",
    "TaskStatusModel",
    "TaskStatusName",
    "TokenType",
    "UserModel",
    "UserTokenModel",
]
