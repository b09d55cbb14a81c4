"""SQLAlchemy ORM models. Everything shares one declarative ``Base``."""

from garage.models.base import Base
from garage.models.branch import Branch
from garage.models.auth_models import User, UserSession
from garage.models.counter import Counter
from garage.models.customer import Customer, Vehicle
from garage.models.technician import Technician
from garage.models.variation import Variation
from garage.models.quotation import Quotation
from garage.models.work_order import WorkOrder, WorkOrderPart, Stage, StageLog
from garage.models.qa import QAVerification
from garage.models.invoice import Invoice, InvoiceLine, Payment
from garage.models.case import Case, CaseActivity
from garage.models.expense import Expense
from garage.models.payroll import TimesheetEntry, PayStub
from garage.models.messaging import Notification, Conversation, ConversationParticipant, Message

__all__ = [
    "Base", "Branch", "User", "UserSession", "Counter",
    "Customer", "Vehicle", "Technician", "Variation", "Quotation",
    "WorkOrder", "WorkOrderPart", "Stage", "StageLog", "QAVerification",
    "Invoice", "InvoiceLine", "Payment",
    "Case", "CaseActivity", "Expense", "TimesheetEntry", "PayStub",
    "Notification", "Conversation", "ConversationParticipant", "Message",
]
