# shopdesk/enums.py

from enum import Enum


class PhoneStatus(str, Enum):
    IN_STOCK = "in_stock"
    SOLD = "sold"
    SOLD_INSTALLMENT = "sold_installment"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT = "credit"


class ItemType(str, Enum):
    PHONE = "phone"
    INVENTORY = "inventory"


class InstallmentPaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class InstallmentSaleStatus(str, Enum):
    """Derived from the payment schedule; never stored."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class CheckStatus(str, Enum):
    WITH_CUSTOMER = "with_customer"
    IN_COLLECTION = "in_collection"
    CASHED = "cashed"
    BOUNCED = "bounced"
    VOIDED = "voided"


class RepairStatus(str, Enum):
    RECEIVED = "received"
    DIAGNOSING = "diagnosing"
    AWAITING_PARTS = "awaiting_parts"
    REPAIRING = "repairing"
    READY_FOR_PICKUP = "ready_for_pickup"
    DELIVERED = "delivered"
    NOT_REPAIRED = "not_repaired"
    RETURNED = "returned"
