class TermsGuardianError(Exception):
    """Base class for analysis errors."""


class InputError(TermsGuardianError):
    """Empty or invalid text handed to an analyzer."""


class ComputationError(TermsGuardianError):
    """A score came out non-finite."""


class DefinitionLookupError(TermsGuardianError, LookupError):
    """A dictionary source or remote call failed."""


class ConcurrencyError(TermsGuardianError):
    """An analysis was requested while one is in flight for the same document."""
