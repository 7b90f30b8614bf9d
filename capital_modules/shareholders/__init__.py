"""
Shareholders module: share classes, the share register, capital calls and
shareholder payments.
"""

from capital_modules.shareholders.capital_calls import CapitalCallService, PaymentService
from capital_modules.shareholders.models import (
    AllocationStatus,
    CapitalCall,
    CapitalCallStatus,
    PaymentStatus,
    PaymentType,
    RegisterEntry,
    ShareClass,
    ShareClassType,
    ShareholderAllocation,
    ShareholderPayment,
    ShareTransfer,
)
from capital_modules.shareholders.service import ShareholderService

__all__ = [
    "AllocationStatus",
    "CapitalCall",
    "CapitalCallService",
    "CapitalCallStatus",
    "PaymentService",
    "PaymentStatus",
    "PaymentType",
    "RegisterEntry",
    "ShareClass",
    "ShareClassType",
    "ShareTransfer",
    "ShareholderAllocation",
    "ShareholderPayment",
    "ShareholderService",
]
