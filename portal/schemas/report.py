# portal/schemas/report.py
from pydantic import BaseModel
from typing import List
from datetime import date

from portal.schemas.due import DueRead


class LedgerSummary(BaseModel):
    total_dues: int
    total_amount: int
    paid_count: int
    pending_count: int
    overdue_count: int
    failed_count: int
    outstanding_total: int
    collected_total: int
    due_soon_count: int


class DashboardRead(BaseModel):
    as_of: date
    summary: LedgerSummary
    due_soon: List[DueRead] = []
