"""Delivery bounded context — secure delivery of translated documents.

Handles the last mile of a translation order: single-use upload links
issued to production providers, the operational status transitions their
deliveries trigger, the hand-off of finished files to the order's Google
Drive folders, and the branded emails that tell the client and the office
what happened. Every state change is recorded in an append-only audit log.
"""

from protean.domain import Domain

from delivery.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
delivery = Domain(name="delivery")
