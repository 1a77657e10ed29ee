from collections import deque
from collections.abc import Iterable

from .models import Transaction


class TransactionStore:
    """
    Ordered queue of recorded transactions.

    Playback drains it from the head (putting a transaction back on the head when a
    request fails to match); record appends at the tail. Not synchronized: callers
    that share it between threads hold their own lock.
    """

    def __init__(self, transactions: Iterable[Transaction] = ()):
        self._transactions: deque[Transaction] = deque(transactions)

    def load_from(self, transactions: Iterable[Transaction]) -> None:
        self._transactions = deque(transactions)

    def pop_front(self) -> Transaction | None:
        if not self._transactions:
            return None
        return self._transactions.popleft()

    def push_front(self, transaction: Transaction) -> None:
        self._transactions.appendleft(transaction)

    def push_back(self, transaction: Transaction) -> None:
        self._transactions.append(transaction)

    def snapshot(self) -> tuple[Transaction, ...]:
        return tuple(self._transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def __bool__(self) -> bool:
        return bool(self._transactions)
