from .auditlog import AuditLog
from .customer import Customer
from .entitymembership import Company, EntityMembership
from .expense import EXPENSE_CATEGORIES, Expense
from .invoice import INV_STATUS_CHOICES, Invoice
from .other_income import OtherIncome
from .payment import PAYMENT_METHODS, Payment
from .snapshot import SummarySnapshot
