from .documents import (
    DocumentSequence, Document, DocumentLine,
    DeliveryNote, PurchaseOrder, ReturnNote, Invoice, Quote, SalesJournal,
    DOCUMENT_CLASSES, SEQUENCE_PREFIXES,
    DELIVERY_NOTE, PURCHASE_ORDER, RETURN_NOTE, INVOICE, QUOTE, SALES_JOURNAL, CASH_CONTROL,
)
from .cash import CashControl, CASH_CONTROL_OPEN, CASH_CONTROL_CLOSED
from .orders import ExternalOrder, ExternalOrderLine, ORDER_STATUS_COMPLETED
from .settings import InventoryApiSettings

__all__ = [
    'DocumentSequence', 'Document', 'DocumentLine',
    'DeliveryNote', 'PurchaseOrder', 'ReturnNote', 'Invoice', 'Quote', 'SalesJournal',
    'DOCUMENT_CLASSES', 'SEQUENCE_PREFIXES',
    'DELIVERY_NOTE', 'PURCHASE_ORDER', 'RETURN_NOTE', 'INVOICE', 'QUOTE', 'SALES_JOURNAL', 'CASH_CONTROL',
    'CashControl', 'CASH_CONTROL_OPEN', 'CASH_CONTROL_CLOSED',
    'ExternalOrder', 'ExternalOrderLine', 'ORDER_STATUS_COMPLETED',
    'InventoryApiSettings',
]
