"""Certificate entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

_ONE_SECOND = timedelta(seconds=1)


@dataclass(frozen=True)
class Certificate:
    """Structural fields of one parsed X.509 certificate.

    ``time_to_expiration`` is relative to the moment the file was read and
    does not take part in equality or hashing, so the same certificate read
    from two files a second apart still deduplicates.
    """

    subject: str
    issuer: str
    common_names: tuple[str, ...]
    not_before: datetime
    not_after: datetime
    time_to_expiration: timedelta = field(default=timedelta(0), compare=False)

    @property
    def has_expired(self) -> bool:
        """True once less than a whole second of validity remains."""
        return self.time_to_expiration < _ONE_SECOND
