"""Error taxonomy for contract building, validation and ledger storage."""


class ContractLedgerError(Exception):
    """Base class for every error raised by the contract ledger."""


class ConfigurationError(ContractLedgerError):
    """Invalid or incomplete runtime configuration."""


class ContractValidationError(ContractLedgerError):
    """Contract or envelope rejected by the validation gate."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or [message]


class StructuralValidationError(ContractValidationError):
    """Schema violations: missing fields, wrong types, bad enum values."""


class ConfidenceRangeError(ContractValidationError):
    """Confidence outside the closed interval [0.0, 1.0]."""

    def __init__(self, value):
        super().__init__(f"confidence must be between 0.0 and 1.0, got {value!r}")
        self.value = value


class RequiredFieldError(ContractValidationError):
    """A field required by a business rule is missing or empty."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class RequestValidationError(RequiredFieldError):
    """Translation request rejected before the provider is called."""


class ProviderError(ContractLedgerError):
    """Translation backend unreachable, rejected the call, or returned nothing."""


class LedgerError(ContractLedgerError):
    """Base class for ledger persistence failures."""


class LedgerWriteError(LedgerError):
    """Appending to the ledger file failed."""


class LedgerCorruptionError(LedgerError):
    """A ledger line could not be parsed as an envelope."""

    def __init__(self, path, line_number: int, reason: str):
        super().__init__(f"Corrupt ledger {path} at line {line_number}: {reason}")
        self.path = path
        self.line_number = line_number
