"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling. ``exit_code`` is the process
    exit status the CLI uses when the error reaches it.
    """

    exit_code = 1


class Cancelled(DomainError):
    """The operation was cancelled between two steps."""


# Validation


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    exit_code = 1


class InvalidDay(ValidationError):
    """Day of month (or days off) outside the allowed range."""


class InvalidPeriod(ValidationError):
    """Year, month or period string that cannot be interpreted."""


class InvalidGranularity(ValidationError):
    """Period is too coarse for the requested granularity."""


class DaysOffExceedsWorkingDays(ValidationError):
    """More time off than there is working time in the month."""


class InvalidRange(ValidationError):
    """End of a range lies before its start."""


class MonthAlreadyExpensed(ValidationError):
    """Services invoice requested for a month that is expensed."""


class MonthIsOff(ValidationError):
    """Services invoice requested for a month recorded as off."""


class OffsetMonthIsOff(ValidationError):
    """The month of the known invoice number is recorded as off."""


class InvalidGranularityForTimeOff(ValidationError):
    """Time off given in another unit than the service rate."""



class NoExpensesRecorded(ValidationError):
    """Expenses invoice requested for a month without expenses."""


class InvalidExpenseItem(ValidationError):
    """Expense item string that cannot be parsed."""


# Data


class DataError(DomainError):
    """Reading or writing persisted records failed."""

    exit_code = 2


class FileNotFound(DataError):
    """A record file does not exist."""


class DeserializeError(DataError):
    """A record file exists but could not be decoded."""

    def __init__(self, type_name: str, cause: str):
        self.type_name = type_name
        self.cause = cause
        super().__init__(f"Failed to deserialize {type_name}: {cause}")


class SerializeError(DataError):
    """A record could not be encoded or written."""


class InvalidDataDirectory(DataError):
    """Data directory is missing or not a directory."""


# Network and FX


class NetworkError(DomainError):
    """Transient network failure; retried by the FX resolver."""

    exit_code = 3


class FxError(DomainError):
    """Terminal failure while resolving exchange rates."""

    exit_code = 3


class FoundNoExchangeRate(FxError):
    """The endpoint answered but did not include the requested pair."""


class InvalidRateResponse(FxError):
    """The endpoint answered with a malformed body."""


# Crypto


class CryptoError(DomainError):
    """Sealing or opening the app password failed."""

    exit_code = 4


class DecryptionFailed(CryptoError):
    """Wrong passphrase or tampered ciphertext."""


class InvalidKeyDerivation(CryptoError):
    """Key derivation parameters are unusable."""


# Email


class EmailError(DomainError):
    """Composing or submitting the invoice email failed."""

    exit_code = 3


class SmtpConnect(EmailError):
    """Could not connect to the SMTP server."""


class SmtpAuth(EmailError):
    """SMTP server rejected the credentials."""

    exit_code = 4


class SmtpSend(EmailError):
    """SMTP server rejected the message."""


class InvalidSmtpServer(EmailError):
    """SMTP server settings are unusable."""

    exit_code = 1


class EmailTemplateError(EmailError):
    """Email subject or body template is malformed."""

    exit_code = 1


# Rendering


class RenderError(DomainError):
    """Producing or saving the PDF failed."""

    exit_code = 5


class PdfCompile(RenderError):
    """The renderer failed to produce PDF bytes."""


class SavePdf(RenderError):
    """The PDF could not be written to disk."""


def time_off_exceeds_working_days(time_off, working_days: int, month) -> str:
    """Return message when time off exceeds the working days."""
    return f"Time off ({time_off}) exceeds the {working_days} working days of {month}"


def offset_month_is_off(month) -> str:
    """Return message when the offset month is recorded as off."""
    return (
        f"Month {month} holds the known invoice number and cannot be recorded as off"
    )


def record_not_found(type_name: str, path) -> str:
    """Return message for a missing record file."""
    return f"No {type_name} record found at '{path}'. Run 'klirr data init' first."


def no_exchange_rate(base: str, target: str, on) -> str:
    """Return message for a missing exchange rate."""
    return f"Found no exchange rate {base}->{target} on {on}"
