"""Payment domain exceptions."""

from __future__ import annotations

from typing import List


class ReconciliationPartialFailure(Exception):
    """Payment reconciliation completed with at least one failed write.

    Never raised to the caller: the gateway has already captured the
    money, so the service returns it in ``ReconciliationResult.error``
    and the client is told to contact support if the order looks stale.
    """

    def __init__(self, failures: List[str]) -> None:
        self.failures = list(failures)
        super().__init__("; ".join(self.failures))
