"""Fulfillment bounded context — Pharmacy Order Fulfillment.

Drives a prescription order through its independent processing stages
(transfer or new prescription intake, insurance, payment, stock check,
delivery, refill authorization). Each stage is tracked by its own milestone
region; a single missing-info overlay suspends automatic progress, and an
inline sleep schedule tells an external poller when to look at the order
again.

Settings are read from the environment:

    PROTEAN_ENV       development | test | staging | production
    LOG_LEVEL         overrides the per-environment level
"""

import os
from datetime import timedelta

from protean.domain import Domain

fulfillment = Domain(name="fulfillment")

TIMED_SLEEP_WINDOW = timedelta(hours=24)


def current_env() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower()
