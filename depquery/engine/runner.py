import logging
from typing import Any, List, Mapping, Sequence, Tuple, Union

import pandas as pd
from tqdm import tqdm

from depquery import config
from depquery.core.data_structures import NodeMatches, QueryNode
from depquery.engine.matcher import Matcher
from depquery.engine.token_index import TokenIndex, as_tokenindex
from depquery.query.builder import as_global_ids

logger = logging.getLogger(__name__)

Queries = Union[QueryNode, Sequence[QueryNode], Mapping[str, QueryNode]]


def named_queries(queries: Queries) -> List[Tuple[str, QueryNode]]:
    """
    Приводит запрос, список или словарь запросов к упорядоченному списку (имя, запрос).
    Имя берется из ключа словаря, затем из label запроса, иначе query_<n>.
    """
    if isinstance(queries, QueryNode):
        queries = [queries]

    if isinstance(queries, Mapping):
        pairs = [(str(name), q) for name, q in queries.items()]
    else:
        pairs = [(q.label or f"query_{i}", q) for i, q in enumerate(queries, 1)]

    seen = set()
    for name, q in pairs:
        if not isinstance(q, QueryNode):
            raise TypeError(f"Query '{name}' is not a tquery, got {type(q).__name__}")
        if name in seen:
            raise ValueError(f"Duplicate query name: '{name}'")
        seen.add(name)
    return pairs


def apply_queries(tokens: Union[pd.DataFrame, TokenIndex], queries: Queries, as_chain: bool = False,
                  block: Any = None, verbose: bool = False) -> NodeMatches:
    """
    Применяет запросы строго по порядку.

    Args:
        as_chain: если True, токены, связанные (напрямую или через fill) совпадениями
                  запроса i, невидимы для запросов j > i. Так более точные запросы,
                  стоящие раньше, имеют приоритет над более общими.
        block: внешний набор заблокированных глобальных id (тройки или DataFrame).
        verbose: прогресс-бар по запросам.

    Returns:
        NodeMatches со строками всех запросов, колонкой .QUERY и id вида "имя#doc.sent.token".
    """
    index = as_tokenindex(tokens)
    pairs = named_queries(queries)

    blocked = set(as_global_ids(block) or ())
    tables: List[pd.DataFrame] = []
    match_ids: List[str] = []
    roles: List[str] = []

    for name, query in tqdm(pairs, desc="Queries", disable=not verbose):
        result = Matcher(index, query, block=blocked).match(name=name)
        logger.info(f"Query '{name}': {len(result)} matches, {len(result.nodes)} nodes")

        for role in result.roles:
            if role not in roles:
                roles.append(role)
        match_ids.extend(result.match_ids)

        if not result.nodes.empty:
            tables.append(result.nodes.assign(**{config.QUERY_COL: name}))
        if as_chain:
            blocked |= result.bound_ids()

    if not tables:
        empty = NodeMatches.empty_result(tuple(roles), extra_columns=(config.QUERY_COL,))
        empty.match_ids = tuple(match_ids)
        return empty

    nodes = pd.concat(tables, ignore_index=True)
    return NodeMatches(nodes=nodes, roles=tuple(roles), match_ids=tuple(match_ids))
