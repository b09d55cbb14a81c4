"""Pydantic request/response schemas."""

from garage.schemas.user import LoginRequest, UserCreate, UserUpdate, UserRead, BranchCreate, BranchRead
from garage.schemas.customer import (
    CustomerCreate, CustomerUpdate, CustomerRead, VehicleCreate, VehicleRead, RegistrationRequest,
)
from garage.schemas.catalog import (
    PartSpec, VariationCreate, VariationUpdate, VariationRead,
    TechnicianCreate, TechnicianUpdate, TechnicianRead,
    QuotationCreate, QuotationRead,
)
from garage.schemas.work_order import (
    AssignRequest, HoursRequest, CompleteRequest, ErrorReport, ResolveRequest, CancelRequest,
    QAApproveRequest, QARejectRequest,
    StageRead, PartRead, StageLogRead, QARead, WorkOrderRead, WorkOrderDetail,
)
from garage.schemas.invoice import (
    InvoiceGenerate, PaymentCreate, VoidRequest, InvoiceLineRead, PaymentRead, InvoiceRead, InvoiceDetail,
    ExpenseCreate, ExpenseUpdate, ExpenseRead,
    TimesheetCreate, TimesheetRead, PayStubCreate, PayStubRead,
)
from garage.schemas.case import CaseCreate, CaseUpdate, CommentCreate, CaseActivityRead, CaseRead, CaseDetail
from garage.schemas.messaging import (
    ConversationCreate, MessageCreate, ConversationRead, MessageRead, NotificationRead,
)
from garage.schemas.ws_messages import WSMessage

__all__ = [
    "LoginRequest", "UserCreate", "UserUpdate", "UserRead", "BranchCreate", "BranchRead",
    "CustomerCreate", "CustomerUpdate", "CustomerRead", "VehicleCreate", "VehicleRead", "RegistrationRequest",
    "PartSpec", "VariationCreate", "VariationUpdate", "VariationRead",
    "TechnicianCreate", "TechnicianUpdate", "TechnicianRead",
    "QuotationCreate", "QuotationRead",
    "AssignRequest", "HoursRequest", "CompleteRequest", "ErrorReport", "ResolveRequest", "CancelRequest",
    "QAApproveRequest", "QARejectRequest",
    "StageRead", "PartRead", "StageLogRead", "QARead", "WorkOrderRead", "WorkOrderDetail",
    "InvoiceGenerate", "PaymentCreate", "VoidRequest", "InvoiceLineRead", "PaymentRead",
    "InvoiceRead", "InvoiceDetail",
    "ExpenseCreate", "ExpenseUpdate", "ExpenseRead",
    "TimesheetCreate", "TimesheetRead", "PayStubCreate", "PayStubRead",
    "CaseCreate", "CaseUpdate", "CommentCreate", "CaseActivityRead", "CaseRead", "CaseDetail",
    "ConversationCreate", "MessageCreate", "ConversationRead", "MessageRead", "NotificationRead",
    "WSMessage",
]
