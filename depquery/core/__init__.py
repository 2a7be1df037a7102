from .data_structures import Condition, GlobalId, NodeKind, NodeMatches, QueryNode
from .exceptions import (
    AnnotationError,
    DepQueryError,
    DuplicateSaveNameError,
    DuplicateTokenError,
    EmptyBindingsError,
    FillNestingError,
    MissingColumnsError,
    NegatedQueryError,
    QueryConstructionError,
    TokenIndexError,
    TraversalCycleError,
    UnsupportedMatchModeError,
)
from .interfaces import BaseTokenStore
