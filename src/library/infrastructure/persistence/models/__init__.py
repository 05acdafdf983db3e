from .item_model import ItemModel
from .loan_model import LoanModel
from .student_model import StudentModel

__all__ = ["ItemModel", "LoanModel", "StudentModel"]
