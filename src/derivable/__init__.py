"""derivable: glitch-free reactive state with atoms, derivations, reactions, lenses."""

from importlib.metadata import version as _version

__version__ = _version("derivable")

from derivable._anchor import Graph, default_graph
from derivable._errors import (
    CyclicDerivationError,
    DerivableError,
    DuplicateAttachmentError,
    InvalidTransactionStateError,
    ReactionError,
    ReactionStateError,
    ReentrantWriteError,
    ValidationError,
)
from derivable.derivable import Derivable, unpack
from derivable.atom import Atom, atom
from derivable.derivation import Derivation, derivation
from derivable.lens import Lens, Lensed
from derivable.reaction import Reaction, ReactionState
from derivable.transaction import Transaction, action, in_transaction, transact, transaction
from derivable.functions import (
    derive,
    is_atom,
    is_derivable,
    is_derivation,
    is_lensed,
    is_reaction,
    lens,
    lift,
    struct,
    swap,
)
# textual NOT auto-imported, opt-in only

__all__ = [
    "Atom",
    "Derivable",
    "Derivation",
    "Graph",
    "Lens",
    "Lensed",
    "Reaction",
    "ReactionState",
    "Transaction",
    "CyclicDerivationError",
    "DerivableError",
    "DuplicateAttachmentError",
    "InvalidTransactionStateError",
    "ReactionError",
    "ReactionStateError",
    "ReentrantWriteError",
    "ValidationError",
    "action",
    "atom",
    "default_graph",
    "derivation",
    "derive",
    "in_transaction",
    "is_atom",
    "is_derivable",
    "is_derivation",
    "is_lensed",
    "is_reaction",
    "lens",
    "lift",
    "struct",
    "swap",
    "transact",
    "transaction",
    "unpack",
]
