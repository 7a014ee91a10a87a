"""Order numbers — human-read identifiers of the form ``dddd-dddd-dddd``.

Numbers are generated optimistically and checked against the repository;
a collision just means drawing again.
"""

import re
import secrets

import structlog

logger = structlog.get_logger(__name__)

ORDER_NUMBER_PATTERN = re.compile(r"^\d{4}-\d{4}-\d{4}$")

_GROUPS = 3
_GROUP_SIZE = 4


class OrderNumberGenerator:
    def next(self) -> str:
        groups = ("".join(str(secrets.randbelow(10)) for _ in range(_GROUP_SIZE)) for _ in range(_GROUPS))
        return "-".join(groups)

    def generate_unique(self, repository) -> str:
        """Draw numbers until one is not already used by a stored order."""
        while True:
            candidate = self.next()
            if repository.find_by_order_number(candidate) is None:
                return candidate
            logger.warning("order_number_collision", order_number=candidate)
