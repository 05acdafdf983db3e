from .overdue_scheduler import OverdueScheduler
from .overdue_sweep import OverdueSweep, SweepReport

__all__ = ["OverdueScheduler", "OverdueSweep", "SweepReport"]
