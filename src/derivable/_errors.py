"""Derivable error hierarchy.

All engine errors inherit from DerivableError for easy catching.
"""


class DerivableError(Exception):
    """Base error for all derivable operations."""


class ValidationError(DerivableError):
    """A candidate atom value failed the atom's validator."""


class ReentrantWriteError(DerivableError):
    """An atom was written while a derivation computed or a propagation pass ran."""


class DuplicateAttachmentError(DerivableError):
    """A reaction already bound to a source was attached again."""


class InvalidTransactionStateError(DerivableError):
    """abort() was called on a transaction that is not open."""


class CyclicDerivationError(DerivableError):
    """A derivation read itself while computing."""


class ReactionStateError(DerivableError):
    """A reaction was started or forced without a source."""


class ReactionError(DerivableError):
    """One or more reactions raised during a propagation pass.

    The pass always runs to completion first; the collected exceptions are
    available on ``errors`` and the first one is chained as ``__cause__``.
    """

    def __init__(self, errors: list[BaseException]) -> None:
        self.errors = list(errors)
        noun = "reaction" if len(self.errors) == 1 else "reactions"
        super().__init__(f"{len(self.errors)} {noun} failed during propagation")
