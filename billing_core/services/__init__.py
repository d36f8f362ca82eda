from .aggregation import (PaymentReport, SummaryReport, aggregate,
                          customer_statement, delinquency_groups,
                          payment_report)
from .allocation import AllocationResult, allocate, run_allocation
from .expenses import pay_installment
from .invoicing import (archive_paid_invoices, generate_monthly_invoices,
                        refresh_invoice_status)
from .payment import PaymentQuote, quote_payment, record_payment
from .summary import get_summary, recompute_summary
