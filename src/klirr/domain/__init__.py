"""Domain layer for klirr application.

The pipeline lives in ``klirr.domain.pipeline`` and is not re-exported
here, since it depends on the storage layer which imports the entities.
"""

from klirr.domain.cancellation import CancellationToken
from klirr.domain.exchange_rates import FrankfurterRateFetcher, FxRateResolver, RateCache
from klirr.domain.numbering import current_number
from klirr.domain.vault import CredentialVault

__all__ = [
    "CancellationToken",
    "CredentialVault",
    "FrankfurterRateFetcher",
    "FxRateResolver",
    "RateCache",
    "current_number",
]
