"""
Circulation Repository Protocols
Persistence interfaces for Student, Item and Loan.
"""
from abc import abstractmethod
from datetime import datetime
from typing import List, Optional, Protocol

from src.library.domain.entities import Item, Loan, Student


class StudentRepository(Protocol):
    """Student directory lookups."""

    @abstractmethod
    async def get_by_id(self, student_id: str) -> Optional[Student]:
        ...

    @abstractmethod
    async def get_by_student_number(self, student_number: str) -> Optional[Student]:
        ...

    @abstractmethod
    async def get_by_physical_id(self, physical_id: str) -> Optional[Student]:
        ...

    @abstractmethod
    async def add(self, student: Student) -> Student:
        ...


class ItemRepository(Protocol):
    """Inventory catalog lookups and copy accounting."""

    @abstractmethod
    async def get_by_id(self, item_id: str) -> Optional[Item]:
        ...

    @abstractmethod
    async def get_by_physical_id(self, physical_id: str) -> Optional[Item]:
        ...

    @abstractmethod
    async def get_by_accession_number(self, accession_number: str) -> Optional[Item]:
        ...

    @abstractmethod
    async def lock_for_update(self, item_id: str) -> Optional[Item]:
        """Load the item holding a row lock until the transaction ends."""
        ...

    @abstractmethod
    async def adjust_copies(self, item_id: str, available_copies: int) -> None:
        ...

    @abstractmethod
    async def add(self, item: Item) -> Item:
        ...


class LoanRepository(Protocol):
    """Loan ledger persistence."""

    @abstractmethod
    async def get_by_id(self, loan_id: str) -> Optional[Loan]:
        ...

    @abstractmethod
    async def find_open(self, student_id: str, item_id: str) -> Optional[Loan]:
        ...

    @abstractmethod
    async def count_active_for_item(self, item_id: str) -> int:
        ...

    @abstractmethod
    async def count_active(self) -> int:
        ...

    @abstractmethod
    async def list_active_for_student(self, student_id: str) -> List[Loan]:
        ...

    @abstractmethod
    async def list_for_student(self, student_id: str) -> List[Loan]:
        ...

    @abstractmethod
    async def list_overdue_ids(self, now: datetime) -> List[str]:
        """Ids of unreturned loans whose due date is before `now`, oldest due first."""
        ...

    @abstractmethod
    async def list_overdue(self, now: datetime) -> List[Loan]:
        ...

    @abstractmethod
    async def list_recent(self, limit: int) -> List[Loan]:
        ...

    @abstractmethod
    async def count_all(self) -> int:
        ...

    @abstractmethod
    async def list_history(self, skip: int, limit: int) -> List[Loan]:
        """Every loan, newest borrow first."""
        ...

    @abstractmethod
    async def add(self, loan: Loan) -> Loan:
        ...

    @abstractmethod
    async def update(self, loan: Loan) -> Loan:
        ...
