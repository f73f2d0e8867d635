from .actions import process_selected_transactions
from .customer import CustomerAdmin, InvoiceAdmin, InvoiceInline
from .ledger import (AuditLogAdmin, PaymentAdmin,
                     RawMobileMoneyTransactionAdmin, ReceiptAdmin,
                     SmsMessageAdmin)
from .readonly import ReadOnlyAdmin
