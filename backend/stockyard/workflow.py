# backend/stockyard/workflow.py
"""
Status vocabularies and transition tables for every workflow entity.

Status fields are stored as plain strings; this module is the single place
that decides which transitions are legal. Services call
``<MACHINE>.ensure(current, target)`` before writing a new status, so an
illegal move is rejected here rather than at each call site.

TRANSFER:
    Requested --ship--> In Transit --receive--> Received
    Requested --cancel--> Cancelled
    In Transit --cancel--> Cancelled

ALLOCATION:
    Reserved --pick/pull--> Pulled --unpull--> Reserved
    Reserved --cancel--> Cancelled

PICK LIST:
    Pending --start--> In Progress --confirm--> Completed
    Pending --confirm--> Completed
    Pending / In Progress --cancel--> Cancelled
"""
from __future__ import annotations

from .errors import InvalidStateError


# Hubs
HUB_FARM = "Farm"
HUB_MKE = "MKE"
HUB_TRANSIT = "Transit"
HUBS = (HUB_FARM, HUB_MKE, HUB_TRANSIT)
PHYSICAL_HUBS = (HUB_FARM, HUB_MKE)

# Zone types
ZONE_STORAGE = "Storage Zone"
ZONE_VIRTUAL = "Virtual"
ZONE_TYPES = (ZONE_STORAGE, ZONE_VIRTUAL)

TRANSIT_LOCATION_ID = "TRANSIT"

# Catalog
CATEGORIES = ("Lumber", "Hardware", "Ready-Made")
ITEM_STATUSES = ("Active", "Discontinuing", "Discontinued")

# Projects
PROJECT_STATUS_PLANNING = "Planning"
PROJECT_STATUS_ACTIVE = "Active"
PROJECT_STATUS_COMPLETE = "Complete"
PROJECT_STATUS_ON_HOLD = "On Hold"
PROJECT_STATUSES = (
    PROJECT_STATUS_PLANNING,
    PROJECT_STATUS_ACTIVE,
    PROJECT_STATUS_COMPLETE,
    PROJECT_STATUS_ON_HOLD,
)

# Allocations
ALLOCATION_STATUS_RESERVED = "Reserved"
ALLOCATION_STATUS_PULLED = "Pulled"
ALLOCATION_STATUS_CANCELLED = "Cancelled"
ALLOCATION_STATUSES = (ALLOCATION_STATUS_RESERVED, ALLOCATION_STATUS_PULLED, ALLOCATION_STATUS_CANCELLED)

# Transfers
TRANSFER_STATUS_REQUESTED = "Requested"
TRANSFER_STATUS_IN_TRANSIT = "In Transit"
TRANSFER_STATUS_RECEIVED = "Received"
TRANSFER_STATUS_CANCELLED = "Cancelled"
TRANSFER_STATUSES = (
    TRANSFER_STATUS_REQUESTED,
    TRANSFER_STATUS_IN_TRANSIT,
    TRANSFER_STATUS_RECEIVED,
    TRANSFER_STATUS_CANCELLED,
)
ACTIVE_TRANSFER_STATUSES = (TRANSFER_STATUS_REQUESTED, TRANSFER_STATUS_IN_TRANSIT)

# Pick lists
PICK_STATUS_PENDING = "Pending"
PICK_STATUS_IN_PROGRESS = "In Progress"
PICK_STATUS_COMPLETED = "Completed"
PICK_STATUS_CANCELLED = "Cancelled"
PICK_STATUSES = (PICK_STATUS_PENDING, PICK_STATUS_IN_PROGRESS, PICK_STATUS_COMPLETED, PICK_STATUS_CANCELLED)
OPEN_PICK_STATUSES = (PICK_STATUS_PENDING, PICK_STATUS_IN_PROGRESS)

# Audit action types
ACTION_STOCK_ADJUSTMENT = "Stock Adjustment"
ACTION_TRANSFER = "Transfer"
ACTION_ALLOCATION = "Allocation"
ACTION_PICK = "Pick"
ACTION_PHYSICAL_COUNT = "Physical Count"
ACTION_ITEM_CREATED = "Item Created"
ACTION_ITEM_UPDATED = "Item Updated"
ACTION_ITEM_DELETED = "Item Deleted"
ACTION_PRODUCT_DELETED = "Product Deleted"
ACTION_TRANSFER_DELETED = "Transfer Deleted"
ACTION_STOCK_RETURN = "Stock Return"
ACTION_TYPES = (
    ACTION_STOCK_ADJUSTMENT,
    ACTION_TRANSFER,
    ACTION_ALLOCATION,
    ACTION_PICK,
    ACTION_PHYSICAL_COUNT,
    ACTION_ITEM_CREATED,
    ACTION_ITEM_UPDATED,
    ACTION_ITEM_DELETED,
    ACTION_PRODUCT_DELETED,
    ACTION_TRANSFER_DELETED,
    ACTION_STOCK_RETURN,
)


class StateMachine:
    """Transition table for one entity type."""

    def __init__(self, entity: str, transitions: dict[str, frozenset[str]]):
        self.entity = entity
        self.transitions = transitions

    def can(self, current: str, target: str) -> bool:
        return target in self.transitions.get(current, frozenset())

    def is_terminal(self, state: str) -> bool:
        return not self.transitions.get(state)

    def ensure(self, current: str, target: str, message: str | None = None) -> None:
        if not self.can(current, target):
            raise InvalidStateError(
                message or f"Cannot move {self.entity} from {current} to {target}",
                current=current,
                target=target,
            )


TRANSFER_MACHINE = StateMachine("transfer", {
    TRANSFER_STATUS_REQUESTED: frozenset({TRANSFER_STATUS_IN_TRANSIT, TRANSFER_STATUS_CANCELLED}),
    TRANSFER_STATUS_IN_TRANSIT: frozenset({TRANSFER_STATUS_RECEIVED, TRANSFER_STATUS_CANCELLED}),
    TRANSFER_STATUS_RECEIVED: frozenset(),
    TRANSFER_STATUS_CANCELLED: frozenset(),
})

ALLOCATION_MACHINE = StateMachine("allocation", {
    ALLOCATION_STATUS_RESERVED: frozenset({ALLOCATION_STATUS_PULLED, ALLOCATION_STATUS_CANCELLED}),
    ALLOCATION_STATUS_PULLED: frozenset({ALLOCATION_STATUS_RESERVED}),
    ALLOCATION_STATUS_CANCELLED: frozenset(),
})

PICK_MACHINE = StateMachine("pick list", {
    PICK_STATUS_PENDING: frozenset({PICK_STATUS_IN_PROGRESS, PICK_STATUS_COMPLETED, PICK_STATUS_CANCELLED}),
    PICK_STATUS_IN_PROGRESS: frozenset({PICK_STATUS_COMPLETED, PICK_STATUS_CANCELLED}),
    PICK_STATUS_COMPLETED: frozenset(),
    PICK_STATUS_CANCELLED: frozenset(),
})
