import enum


class RentalType(str, enum.Enum):
    HOURLY = "HOURLY"
    WORKSPACE_DAILY = "WORKSPACE_DAILY"
    WORKSPACE_WEEKLY = "WORKSPACE_WEEKLY"
    WORKSPACE_MONTHLY = "WORKSPACE_MONTHLY"
    ROOM_DAILY = "ROOM_DAILY"
    ROOM_WEEKLY = "ROOM_WEEKLY"
    ROOM_MONTHLY = "ROOM_MONTHLY"

    @property
    def is_workspace(self) -> bool:
        return self.value.startswith("WORKSPACE_")

    @property
    def is_room(self) -> bool:
        return self.value.startswith("ROOM_")


class RentalPeriodType(str, enum.Enum):
    HOURLY = "HOURLY"
    SPECIFIC_DAYS = "SPECIFIC_DAYS"
    WEEKLY = "WEEKLY"
    CALENDAR_MONTH = "CALENDAR_MONTH"
    SLIDING_MONTH = "SLIDING_MONTH"


class PriceUnit(str, enum.Enum):
    HOUR = "HOUR"
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"


class PaymentType(str, enum.Enum):
    PREPAYMENT = "PREPAYMENT"
    POSTPAYMENT = "POSTPAYMENT"


class ApplicationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (ApplicationStatus.CANCELLED, ApplicationStatus.COMPLETED)


class CalendarStatus(str, enum.Enum):
    PLANNED = "PLANNED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class InvoiceStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    PAID = "PAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


PAID_INVOICE_STATUSES = (InvoiceStatus.PAID.value, InvoiceStatus.PARTIALLY_PAID.value)

# Applications that hold their workspaces against other applications
BLOCKING_APPLICATION_STATUSES = (
    ApplicationStatus.DRAFT.value,
    ApplicationStatus.PENDING.value,
    ApplicationStatus.CONFIRMED.value,
    ApplicationStatus.ACTIVE.value,
)

RENTAL_TYPE_LABELS = {
    RentalType.HOURLY: "Hourly rental",
    RentalType.WORKSPACE_DAILY: "Workspace (day)",
    RentalType.WORKSPACE_WEEKLY: "Workspace (week)",
    RentalType.WORKSPACE_MONTHLY: "Workspace (month)",
    RentalType.ROOM_DAILY: "Room (day)",
    RentalType.ROOM_WEEKLY: "Room (week)",
    RentalType.ROOM_MONTHLY: "Room (month)",
}
