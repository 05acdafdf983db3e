from .notification_gateway import NotificationGateway, NotificationResult
from .repositories import ItemRepository, LoanRepository, StudentRepository
from .unit_of_work import CirculationUnitOfWork

__all__ = [
    "CirculationUnitOfWork",
    "ItemRepository",
    "LoanRepository",
    "NotificationGateway",
    "NotificationResult",
    "StudentRepository",
]
