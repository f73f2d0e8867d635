from .allocation import Allocation, allocate
from .amounts import format_kes, to_amount
from .customers import delete_customer, find_customer_by_reference
from .ingestion import ingest_transaction, process_mobile_money_transactions
from .notifications import (HttpSmsSender, SmsSender, build_sms_sender,
                            normalize_phone_number, send_bill_reminders,
                            send_sms, send_to_collection_day)
from .receipt_numbers import generate_receipt_number
from .reports import customers_with_high_debt
from .settlement import SettlementResult, notify_settlement, settle
