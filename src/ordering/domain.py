"""Ordering bounded context — checkout, orders, payments reconciliation.

Turns a priced cart into a persisted Order, drives the selected payment path,
reconciles provider callbacks, and fans out notifications and referral
commissions once an order is paid.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
