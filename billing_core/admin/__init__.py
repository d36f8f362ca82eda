from .actions import (pay_selected_installments, recompute_selected_summaries,
                      refresh_status)
from .customer import CustomerAdmin, OtherIncomeAdmin
from .expense import ExpenseAdmin
from .invoice import InvoiceAdmin, PaymentAdmin
from .membership import CompanyAdmin, EntityMembershipAdmin
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin
from .snapshot import AuditLogAdmin, SummarySnapshotAdmin
