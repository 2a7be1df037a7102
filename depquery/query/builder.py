"""
Декларативное построение запросов к деревьям зависимостей.

Каждая строка запроса - один узел, потомки и предки описываются вложенными
вызовами children()/parents() с отступом:

    SAY_VERBS = ["say", "tell", "claim"]
    quotes = tquery(fill(),
                    children(fill(), relation=["nsubj", "agent"], save="source"),
                    children(fill(), relation=["ccomp", "parataxis"], save="quote"),
                    lemma=SAY_VERBS, save="verb")

Имена колонок в lookup-ах могут нести флаги после двойного подчеркивания
(lemma__NRI): N - отрицание, F - точное совпадение, I - без учета регистра,
R - регулярное выражение. Построение ничего не ищет, только проверяет структуру.
"""
import logging
import math
from typing import Any, Iterable, List, Optional, Set, Tuple

import pandas as pd

from depquery import config
from depquery.core.data_structures import GlobalId, NodeKind, QueryNode
from depquery.core.exceptions import (
    DuplicateSaveNameError,
    FillNestingError,
    NegatedQueryError,
    QueryConstructionError,
)
from depquery.query.conditions import parse_lookups

logger = logging.getLogger(__name__)


def as_global_ids(g_id: Any) -> Optional[frozenset]:
    """
    g_id или block: DataFrame с колонками (doc_id, sentence, token_id) - берутся
    первые три, если имен нет - или итерируемое тройек. None остается None.
    """
    if g_id is None:
        return None
    if isinstance(g_id, pd.DataFrame):
        cols = config.ID_COLUMNS if set(config.ID_COLUMNS) <= set(g_id.columns) else g_id.columns[:3]
        rows = g_id[list(cols)].itertuples(index=False, name=None)
    else:
        rows = g_id
    return frozenset(GlobalId(doc, int(sent), int(tok)) for doc, sent, tok in rows)


def _normalize_depth(depth: Any) -> Optional[int]:
    if depth is None or (isinstance(depth, float) and math.isinf(depth)):
        return None
    if int(depth) != depth or depth < 1:
        raise QueryConstructionError(f"depth must be a positive integer or infinite, got {depth!r}")
    return int(depth)


def _split_nested(args: Tuple[Any, ...]) -> Tuple[List[QueryNode], List[QueryNode]]:
    """Делит позиционные аргументы на вложенные запросы и fill()."""
    nested, fills = [], []
    for arg in args:
        if not isinstance(arg, QueryNode) or arg.kind == NodeKind.ROOT:
            raise QueryConstructionError(
                f"Positional arguments must be children(), parents(), not_children(), "
                f"not_parents() or fill(), got {type(arg).__name__}"
            )
        if arg.kind == NodeKind.FILL:
            fills.append(arg)
        else:
            nested.append(arg)
    return nested, fills


def _keep_fills(fills: List[QueryNode], save: Optional[str]) -> Tuple[QueryNode, ...]:
    # fill без save некуда записывать - просто выбрасываем
    if fills and not save:
        logger.debug(f"Dropping {len(fills)} fill() without save target")
        return ()
    return tuple(fills)


def check_duplicate_names(node: QueryNode, seen: Optional[Set[str]] = None) -> Set[str]:
    """Имена save уникальны во всем дереве запроса."""
    seen = set() if seen is None else seen
    if node.save:
        if node.save in seen:
            raise DuplicateSaveNameError(node.save)
        seen.add(node.save)
    for sub in node.nested:
        check_duplicate_names(sub, seen)
    return seen


def _check_no_saves(node: QueryNode):
    for sub in node.nested:
        if sub.save:
            raise NegatedQueryError(f"nodes inside not_children()/not_parents() cannot use save ('{sub.save}')")
        if sub.fills:
            raise NegatedQueryError("fill() cannot be used in not_children()/not_parents()")
        _check_no_saves(sub)


def tquery(*nested: QueryNode, g_id: Any = None, save: Optional[str] = None,
           label: Optional[str] = None, **lookup: Any) -> QueryNode:
    """
    Корневой узел запроса.

    Args:
        *nested: children(), parents(), not_children(), not_parents(), fill().
        g_id: ограничить кандидатов явным набором глобальных id.
        save: имя, под которым найденный токен попадет в результат.
        label: имя запроса (используется в apply_queries, если не задано явно).
        **lookup: условия на колонки токенов, например lemma=["say", "tell"], POS="VB*".
    """
    sub, fills = _split_nested(nested)
    node = QueryNode(
        kind=NodeKind.ROOT,
        conditions=parse_lookups(lookup),
        g_id=as_global_ids(g_id),
        save=save,
        nested=tuple(sub),
        fills=_keep_fills(fills, save),
        label=label,
    )
    check_duplicate_names(node)
    return node


def _relative(kind: NodeKind, nested: Tuple[QueryNode, ...], g_id: Any, save: Optional[str],
              req: bool, depth: Any, connected: bool, lookup: dict) -> QueryNode:
    sub, fills = _split_nested(nested)
    node = QueryNode(
        kind=kind,
        conditions=parse_lookups(lookup),
        g_id=as_global_ids(g_id),
        save=save,
        nested=tuple(sub),
        fills=_keep_fills(fills, save),
        req=req,
        depth=_normalize_depth(depth),
        connected=connected,
    )
    check_duplicate_names(node)
    return node


def children(*nested: QueryNode, g_id: Any = None, save: Optional[str] = None, req: bool = True,
             depth: Any = 1, connected: bool = False, **lookup: Any) -> QueryNode:
    """
    Потомки найденного узла. Используется только внутри tquery().

    Args:
        req: если False, узел необязателен (запрос подлежащее-сказуемое-дополнение
             с необязательным дополнением).
        depth: 1 - только прямые потомки, 2 - потомки и их потомки, math.inf - все.
        connected: при depth > 1 фильтр применяется на каждом уровне, так что
             находятся только связные ветки. Иначе сначала собираются все потомки
             до depth, потом фильтруются.
    """
    return _relative(NodeKind.CHILDREN, nested, g_id, save, req, depth, connected, lookup)


def parents(*nested: QueryNode, g_id: Any = None, save: Optional[str] = None, req: bool = True,
            depth: Any = 1, connected: bool = False, **lookup: Any) -> QueryNode:
    """Предки найденного узла. Аргументы как у children()."""
    return _relative(NodeKind.PARENTS, nested, g_id, save, req, depth, connected, lookup)


def _negated(kind: NodeKind, nested: Tuple[QueryNode, ...], g_id: Any, save: Optional[str],
             depth: Any, connected: bool, lookup: dict) -> QueryNode:
    if save is not None:
        raise NegatedQueryError(f"not_{kind.value}() cannot use save ('{save}')")
    sub, fills = _split_nested(nested)
    if fills:
        raise NegatedQueryError(f"fill() cannot be used in not_{kind.value}()")
    node = QueryNode(
        kind=kind,
        conditions=parse_lookups(lookup),
        g_id=as_global_ids(g_id),
        nested=tuple(sub),
        req=True,
        negate=True,
        depth=_normalize_depth(depth),
        connected=connected,
    )
    _check_no_saves(node)
    return node


def not_children(*nested: QueryNode, g_id: Any = None, save: Optional[str] = None,
                 depth: Any = 1, connected: bool = False, **lookup: Any) -> QueryNode:
    """Узел отклоняется, если у него есть хотя бы один такой потомок."""
    return _negated(NodeKind.CHILDREN, nested, g_id, save, depth, connected, lookup)


def not_parents(*nested: QueryNode, g_id: Any = None, save: Optional[str] = None,
                depth: Any = 1, connected: bool = False, **lookup: Any) -> QueryNode:
    """Узел отклоняется, если у него есть хотя бы один такой предок."""
    return _negated(NodeKind.PARENTS, nested, g_id, save, depth, connected, lookup)


def fill(*nested: QueryNode, g_id: Any = None, depth: Any = None, connected: bool = False,
         **lookup: Any) -> QueryNode:
    """
    Заливка: все потомки сохраненного узла получают его роль.
    По умолчанию глубина не ограничена. Работает только под узлом с save.
    """
    if nested:
        raise FillNestingError()
    return QueryNode(
        kind=NodeKind.FILL,
        conditions=parse_lookups(lookup),
        g_id=as_global_ids(g_id),
        req=False,
        depth=_normalize_depth(depth),
        connected=connected,
    )


def iter_nodes(node: QueryNode) -> Iterable[QueryNode]:
    """Обход всех узлов запроса (без fill) в глубину."""
    yield node
    for sub in node.nested:
        yield from iter_nodes(sub)
