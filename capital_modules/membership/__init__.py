"""
Membership module: recurring fees on share classes, the invoices billed
from them, and their settlement into the ledger.
"""

from capital_modules.membership.models import (
    BillingCycle,
    DelinquentInvoice,
    FeeInvoice,
    FeeInvoiceStatus,
    FeeSchedule,
    FeeType,
    InvoiceRun,
)
from capital_modules.membership.service import MembershipFeeService

__all__ = [
    "BillingCycle",
    "DelinquentInvoice",
    "FeeInvoice",
    "FeeInvoiceStatus",
    "FeeSchedule",
    "FeeType",
    "InvoiceRun",
    "MembershipFeeService",
]
