from .item import Item
from .loan import Loan
from .student import Student

__all__ = ["Item", "Loan", "Student"]
