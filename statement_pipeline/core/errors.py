"""Error taxonomy for the statement pipeline.

Extraction-empty and persistence failures are surfaced to callers as distinct
exception types. Classifier failures have no exception type here: they are
absorbed by the category resolver and show up only as "Uncategorized".
"""


class PipelineError(Exception):
    """Base class for statement pipeline failures."""


class ExtractionEmptyError(PipelineError):
    """Raised when text parsing or document extraction produced no candidate transactions."""

    def __init__(self, source: str) -> None:
        """Record which extraction path came back empty."""
        self.source = source
        super().__init__(f"No transactions could be extracted from {source} input")


class ExtractionFailedError(PipelineError):
    """Raised when the document extraction collaborator fails or returns an unusable payload."""


class PersistenceError(PipelineError):
    """Raised when a write or read against the persistence gateway fails."""


class StatementNotFoundError(PersistenceError):
    """Raised when a statement id does not exist."""

    def __init__(self, statement_id: str) -> None:
        """Keep the missing statement id for error reporting."""
        self.statement_id = statement_id
        super().__init__(f"Statement not found: {statement_id}")


class TransactionNotFoundError(PersistenceError):
    """Raised when a persisted transaction id does not exist."""

    def __init__(self, transaction_id: str) -> None:
        """Keep the missing transaction id for error reporting."""
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")


class StatementAlreadyCommittedError(PipelineError):
    """Raised when a verification commit targets a statement that is already COMPLETED."""

    def __init__(self, statement_id: str) -> None:
        """Keep the statement id for error reporting."""
        self.statement_id = statement_id
        super().__init__(f"Statement already committed: {statement_id}")


class VerificationSessionNotFoundError(PipelineError):
    """Raised when no verification session is open for a statement."""

    def __init__(self, statement_id: str) -> None:
        """Keep the statement id for error reporting."""
        self.statement_id = statement_id
        super().__init__(f"No verification session for statement: {statement_id}")


class InvalidCategoryError(ValueError):
    """Raised when a manual category override is not part of the category vocabulary."""


class UnknownTransactionError(KeyError):
    """Raised when a ledger toggle references a candidate id that is not in the session."""
