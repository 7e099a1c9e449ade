"""
Transfer Workflow.

State machine for stock transfers between locations.  Quantity updates
(``ship`` / ``receive``) do not name their target state: the aggregate
recomputes it with ``derive_state`` and the table lists every state the
recomputation may land on.
"""

from stock_kernel.domain.workflow import Guard, Transition, Workflow
from stock_kernel.logging_config import get_logger

logger = get_logger("modules.transfers.workflows")


DRAFT = "DRAFT"
SENT = "SENT"
PARTIALLY_RECEIVED = "PARTIALLY_RECEIVED"
COMPLETED = "COMPLETED"
CANCELLED = "CANCELLED"


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

HAS_ITEMS = Guard(
    name="has_items",
    description="Transfer has at least one item and every requested quantity is positive",
)

ALL_ITEMS_RECEIVED = Guard(
    name="all_items_received",
    description="Every item has received quantity equal to shipped quantity",
)

COMPLETED_FROM_SHIPMENT = Guard(
    name="completed_from_shipment",
    description=(
        "Transfer reached COMPLETED because shipped totals met requested totals; "
        "receipts are still being recorded"
    ),
)


def _derived(from_state: str, action: str, guard: Guard | None = None) -> tuple[Transition, ...]:
    return tuple(
        Transition(from_state, to_state, action=action, guard=guard, derived=True)
        for to_state in (SENT, PARTIALLY_RECEIVED, COMPLETED)
    )


# -----------------------------------------------------------------------------
# Transfer Workflow
# -----------------------------------------------------------------------------

TRANSFER_WORKFLOW = Workflow(
    name="stock_transfer",
    description="Stock transfer between locations",
    initial_state=DRAFT,
    states=(
        DRAFT,
        SENT,
        PARTIALLY_RECEIVED,
        COMPLETED,
        CANCELLED,
    ),
    transitions=(
        Transition(DRAFT, DRAFT, action="add_item"),
        Transition(DRAFT, DRAFT, action="remove_item"),
        Transition(DRAFT, DRAFT, action="update_requested_qty"),
        Transition(DRAFT, SENT, action="send", guard=HAS_ITEMS),
        *_derived(SENT, "ship"),
        *_derived(PARTIALLY_RECEIVED, "ship"),
        *_derived(SENT, "receive"),
        *_derived(PARTIALLY_RECEIVED, "receive"),
        *_derived(COMPLETED, "receive", guard=COMPLETED_FROM_SHIPMENT),
        Transition(SENT, COMPLETED, action="complete", guard=ALL_ITEMS_RECEIVED),
        Transition(PARTIALLY_RECEIVED, COMPLETED, action="complete", guard=ALL_ITEMS_RECEIVED),
        Transition(DRAFT, CANCELLED, action="cancel"),
        Transition(SENT, CANCELLED, action="cancel"),
        Transition(PARTIALLY_RECEIVED, CANCELLED, action="cancel"),
    ),
    terminal_states=(COMPLETED, CANCELLED),
)

logger.debug(
    "transfer_workflow_registered",
    extra={
        "workflow_name": TRANSFER_WORKFLOW.name,
        "state_count": len(TRANSFER_WORKFLOW.states),
        "transition_count": len(TRANSFER_WORKFLOW.transitions),
        "initial_state": TRANSFER_WORKFLOW.initial_state,
    },
)
