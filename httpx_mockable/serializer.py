import logging
from collections.abc import Iterable
from os import PathLike

from pydantic import TypeAdapter

from .models import Transaction

logger = logging.getLogger(__name__)

_recording = TypeAdapter(list[Transaction])


def store(file_path: PathLike | str, transactions: Iterable[Transaction]) -> None:
    """
    Write transactions to file as a JSON array, in order.
    """
    transactions = list(transactions)
    with open(file_path, "wb") as f:
        f.write(_recording.dump_json(transactions, indent=2))
    logger.info("Stored %d transaction(s) to %s", len(transactions), file_path)


def retrieve(file_path: PathLike | str) -> list[Transaction]:
    """
    Read the ordered transactions previously written by store().
    """
    with open(file_path, "rb") as f:
        transactions = _recording.validate_json(f.read())
    logger.info("Retrieved %d transaction(s) from %s", len(transactions), file_path)
    return transactions
