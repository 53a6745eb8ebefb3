from pydantic import BaseModel
from typing import List, Optional


class CountItem(BaseModel):
    """One bucket of a group-by count."""
    key: str
    count: int = 0


class TicketReportOut(BaseModel):
    """Ticket rollup for a date range."""
    start_date: str
    end_date: str
    total: int = 0
    open_count: int = 0
    unassigned_count: int = 0
    avg_first_response_hours: Optional[float] = None
    avg_resolution_hours: Optional[float] = None
    by_status: List[CountItem] = []
    by_priority: List[CountItem] = []
    by_category: List[CountItem] = []
    by_staff: List[CountItem] = []


class StaffPerformanceItem(BaseModel):
    """Per assignee workload and outcomes."""
    user_id: int
    name: str
    assigned: int = 0
    open: int = 0
    resolved: int = 0
    closed: int = 0
    avg_first_response_hours: Optional[float] = None


class WorkOrderReportOut(BaseModel):
    """Maintenance activity rollup."""
    start_date: str
    end_date: str
    total: int = 0
    by_status: List[CountItem] = []
    by_priority: List[CountItem] = []
    by_staff: List[CountItem] = []
    total_expenses: float = 0.0
