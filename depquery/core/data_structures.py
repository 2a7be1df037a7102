# depquery/core/data_structures.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, List, NamedTuple, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from depquery import config


class GlobalId(NamedTuple):
    """
    Глобальный адрес токена: (doc_id, sentence, token_id).
    Используется и как ключ индекса, и как ключ join-а.
    """
    doc_id: Any
    sentence: int
    token_id: int

    def as_match_id(self) -> str:
        return config.GLOBAL_ID_SEP.join(str(part) for part in self)


class Condition(BaseModel):
    """
    Атомарное условие на колонку токена. Все условия узла объединяются через AND,
    термы внутри условия - через OR.
    """
    model_config = ConfigDict(frozen=True)

    column: str
    terms: Tuple[Any, ...]
    negate: bool = False
    fixed: bool = False
    ignore_case: bool = False
    regex: bool = False

    @property
    def flags(self) -> str:
        return "".join(flag for flag, on in (
            (config.FLAG_NEGATE, self.negate),
            (config.FLAG_FIXED, self.fixed),
            (config.FLAG_IGNORE_CASE, self.ignore_case),
            (config.FLAG_REGEX, self.regex),
        ) if on)

    def __str__(self):
        name = f"{self.column}{config.FLAG_SEP}{self.flags}" if self.flags else self.column
        return f"{name}={list(self.terms)!r}"


class NodeKind(str, Enum):
    ROOT = "root"
    CHILDREN = "children"
    PARENTS = "parents"
    FILL = "fill"


class QueryNode(BaseModel):
    """
    Узел шаблона дерева. Корень запроса, вложенный children/parents
    (в том числе отрицательный) и fill различаются полем kind,
    а не типом объекта.
    """
    model_config = ConfigDict(frozen=True)

    kind: NodeKind = NodeKind.ROOT
    conditions: Tuple[Condition, ...] = ()
    g_id: Optional[FrozenSet[GlobalId]] = None
    save: Optional[str] = None
    nested: Tuple["QueryNode", ...] = ()
    fills: Tuple["QueryNode", ...] = ()

    req: bool = True
    negate: bool = False
    # None - без ограничения глубины
    depth: Optional[int] = Field(default=1, ge=1)
    connected: bool = False

    label: Optional[str] = None

    @property
    def direction(self) -> Optional[str]:
        if self.kind == NodeKind.FILL:
            return NodeKind.CHILDREN.value
        if self.kind == NodeKind.ROOT:
            return None
        return self.kind.value

    @property
    def has_filter(self) -> bool:
        return bool(self.conditions) or self.g_id is not None

    def save_names(self) -> List[str]:
        """Все имена save в порядке обхода в глубину (fill не считается)."""
        names = [self.save] if self.save else []
        for sub in self.nested:
            names.extend(sub.save_names())
        return names

    def describe(self, indent: int = 0) -> str:
        """Дерево запроса в читаемом виде (для логов и CLI)."""
        if self.kind == NodeKind.ROOT:
            head = "tquery"
        elif self.kind == NodeKind.FILL:
            head = "fill"
        else:
            head = f"not_{self.kind.value}" if self.negate else self.kind.value

        args = [str(c) for c in self.conditions]
        if self.g_id is not None:
            args.append(f"g_id=<{len(self.g_id)} ids>")
        if self.save:
            args.append(f"save={self.save!r}")
        if self.kind != NodeKind.ROOT:
            if not self.req:
                args.append("req=False")
            if self.depth != 1:
                args.append(f"depth={'inf' if self.depth is None else self.depth}")
            if self.connected:
                args.append("connected=True")

        lines = ["  " * indent + f"{head}({', '.join(args)})"]
        for sub in self.fills + self.nested:
            lines.append(sub.describe(indent + 1))
        return "\n".join(lines)


QueryNode.model_rebuild()


@dataclass
class NodeMatches:
    """
    Результат поиска: длинная таблица (одна строка на связанный токен)
    плюс объявленные роли и id всех совпадений.
    """
    nodes: pd.DataFrame
    roles: Tuple[str, ...] = ()
    match_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def empty(self) -> bool:
        """Нет ни одного совпадения. Нормальное состояние, не ошибка."""
        return len(self.match_ids) == 0

    def __len__(self):
        return len(self.match_ids)

    def bound_ids(self) -> set:
        """Все глобальные id, попавшие в таблицу (напрямую или через fill)."""
        cols = self.nodes[config.ID_COLUMNS].itertuples(index=False, name=None)
        return {GlobalId(*row) for row in cols}

    @classmethod
    def empty_result(cls, roles: Tuple[str, ...] = (), extra_columns: Tuple[str, ...] = ()) -> "NodeMatches":
        columns = config.NODE_COLUMNS + list(extra_columns)
        return cls(nodes=pd.DataFrame(columns=columns), roles=tuple(roles), match_ids=())
