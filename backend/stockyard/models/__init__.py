from .catalog import InventoryItem, Location
from .stock import StockLevel, AuditLogEntry
from .projects import Project, Allocation, PickList
from .transfers import Transfer
from .reconciliation import ReconciliationReport, ReconciliationReportItem
from .notifications import NotificationRecipient

__all__ = [
    'InventoryItem', 'Location',
    'StockLevel', 'AuditLogEntry',
    'Project', 'Allocation', 'PickList',
    'Transfer',
    'ReconciliationReport', 'ReconciliationReportItem',
    'NotificationRecipient',
]
