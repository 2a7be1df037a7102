# depquery/core/exceptions.py
from typing import Iterable


class DepQueryError(Exception):
    """Базовое исключение пакета."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

# --- Ошибки построения запроса ---

class QueryConstructionError(DepQueryError):
    """Запрос собран некорректно. Всегда фатально."""


class DuplicateSaveNameError(QueryConstructionError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Query cannot contain duplicate save names: '{name}'")


class FillNestingError(QueryConstructionError):
    def __init__(self, reason: str = "fill() cannot contain nested queries (children(), parents(), etc.)"):
        super().__init__(reason)


class NegatedQueryError(QueryConstructionError):
    """not_children / not_parents с save или fill."""
    def __init__(self, reason: str):
        super().__init__(f"Invalid negated query: {reason}")


class UnsupportedMatchModeError(QueryConstructionError):
    def __init__(self, lookup_name: str, flags: str):
        self.lookup_name = lookup_name
        super().__init__(f"Unsupported match flags '{flags}' in lookup '{lookup_name}' (use N, F, I, R)")

# --- Ошибки индекса токенов ---

class TokenIndexError(DepQueryError):
    """Входная таблица токенов не годится для построения индекса."""


class MissingColumnsError(TokenIndexError):
    def __init__(self, columns: Iterable[str], context: str = "tokens"):
        self.columns = list(columns)
        super().__init__(f"Columns not found in {context}: {', '.join(self.columns)}")


class DuplicateTokenError(TokenIndexError):
    def __init__(self, n_duplicates: int):
        self.n_duplicates = n_duplicates
        super().__init__(f"Token index contains {n_duplicates} duplicate (doc_id, sentence, token_id) rows")

# --- Ошибки аннотации ---

class AnnotationError(DepQueryError):
    """Аннотацию невозможно выполнить."""


class EmptyBindingsError(AnnotationError):
    def __init__(self):
        super().__init__(
            "Cannot annotate nodes, because no nodes are specified "
            "(use the save parameter in tquery(), children() or parents())"
        )

# --- Ошибки обхода ---

class TraversalCycleError(DepQueryError):
    """Цепочка parent замкнулась. Отклоняет только текущего кандидата."""
    def __init__(self, global_id):
        self.global_id = global_id
        super().__init__(f"Cycle detected in parent chain at {tuple(global_id)}")
