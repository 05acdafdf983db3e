"""
Circulation Repository Implementations
"""
from .item_repository_impl import SQLAlchemyItemRepository
from .loan_repository_impl import SQLAlchemyLoanRepository
from .student_repository_impl import SQLAlchemyStudentRepository

__all__ = [
    "SQLAlchemyItemRepository",
    "SQLAlchemyLoanRepository",
    "SQLAlchemyStudentRepository",
]
