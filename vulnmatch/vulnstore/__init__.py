"""Vulnerability store — batched match queries against the vuln table.

Every failure surfaced by the store is a :class:`VulnStoreError` whose
``stage`` names the step that failed. Driver exceptions are chained as
``__cause__`` rather than copied into the message.
"""


class VulnStoreError(Exception):
    """Base vulnerability store exception."""

    stage = "vulnstore"


class UnknownMatcherError(VulnStoreError, ValueError):
    """Requested matcher is not part of the matcher vocabulary."""

    stage = "matcher"


class QueryBuildError(VulnStoreError):
    """The match query could not be rendered."""

    stage = "build"


class TransactionError(VulnStoreError):
    """The transaction could not be started."""

    stage = "begin"


class PrepareError(VulnStoreError):
    """The match query could not be prepared."""

    stage = "prepare"


class BatchSendError(VulnStoreError):
    """The queued batch could not be sent or did not finish in time."""

    stage = "send"


class BatchProtocolError(VulnStoreError):
    """Queue and drain order of a batch went out of step."""

    stage = "protocol"


class ScanError(VulnStoreError):
    """A returned row could not be turned into a vulnerability."""

    stage = "scan"


class BatchCloseError(VulnStoreError):
    """Closing the batch revealed an unhandled result."""

    stage = "close"


class CommitError(VulnStoreError):
    """The transaction could not be committed."""

    stage = "commit"
