from .catalog_routes import items_router, students_router
from .circulation_routes import router as circulation_router

__all__ = ["circulation_router", "items_router", "students_router"]
