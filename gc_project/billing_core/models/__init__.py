from .auditlog import AuditLog
from .customer import Customer
from .invoice import Invoice, invoice_status_for
from .mobile_money import RawMobileMoneyTransaction
from .payment import Payment
from .receipt import Receipt
from .sms import SmsMessage
