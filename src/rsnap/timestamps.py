"""Archive identifier formatting/parsing helpers.

Identifiers are local wall-clock times in ``YYYY-MM-DD_HH:MM:SS`` form, so plain
string order equals chronological order.
"""

from __future__ import annotations

from datetime import datetime

IDENTIFIER_FORMAT = "%Y-%m-%d_%H:%M:%S"

EPOCH = datetime(1970, 1, 1)


def local_now() -> datetime:
    return datetime.now()


def format_identifier(moment: datetime) -> str:
    return moment.strftime(IDENTIFIER_FORMAT)


def parse_identifier(identifier: str) -> datetime:
    return datetime.strptime(identifier, IDENTIFIER_FORMAT)


def identifier_moment(identifier: str) -> datetime:
    """Return the timestamp an identifier encodes, or the epoch if it is malformed."""
    try:
        return parse_identifier(identifier)
    except ValueError:
        return EPOCH
