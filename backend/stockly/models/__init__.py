from .inventory import Item, Category, CustomField, MeasurementUnit, FieldType
from .contacts import Client, Supplier
from .documents import (
    Invoice, InvoiceItem, CustomInvoiceField, InvoiceStatus,
    Estimate, EstimateItem, CustomEstimateField, EstimateStatus,
)
from .settings import AppSetting

__all__ = [
    'Item', 'Category', 'CustomField', 'MeasurementUnit', 'FieldType',
    'Client', 'Supplier',
    'Invoice', 'InvoiceItem', 'CustomInvoiceField', 'InvoiceStatus',
    'Estimate', 'EstimateItem', 'CustomEstimateField', 'EstimateStatus',
    'AppSetting',
]
