"""Email address parsing utilities."""

from email.utils import getaddresses

from klirr.domain.entities import EmailAccount
from klirr.domain.errors import ValidationError


def parse_email_accounts(text: str) -> tuple[EmailAccount, ...]:
    """Parse a comma separated list of addresses.

    Both "Sherlock Holmes <sherlock@example.com>" and a bare
    "sherlock@example.com" are accepted; a bare address is named after its
    local part.

    Raises:
        ValidationError: If an address is malformed
    """
    accounts = []
    for name, address in getaddresses([text]):
        if not address:
            continue
        accounts.append(EmailAccount(name=name or address.split("@")[0], email=address))
    if text.strip() and not accounts:
        raise ValidationError(f"Could not parse email addresses from '{text}'")
    return tuple(accounts)


def format_email_accounts(accounts: tuple[EmailAccount, ...]) -> str:
    """Inverse of ``parse_email_accounts``, used as prompt defaults."""
    return ", ".join(str(account) for account in accounts)
