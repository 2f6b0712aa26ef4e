"""Error kinds raised by a watch run.

Every run failure is a :class:`WatchError`. None of them are retried inside the
run; the next scheduled trigger is the retry.
"""

from __future__ import annotations


class WatchError(Exception):
    """Base class for failures that abort a watch run."""


class ConfigError(WatchError):
    """Required configuration is missing or malformed."""


class StoreError(WatchError):
    """The cursor store is unreachable or holds a value we cannot interpret."""


class FetchError(WatchError):
    """The issue tracker could not be queried."""


class NotifyError(WatchError):
    """A notification could not be delivered."""


class NotifyCancelled(NotifyError):
    """A send was attempted after the run deadline had already passed."""
