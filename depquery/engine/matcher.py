import logging
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple, Union

import pandas as pd

from depquery import config
from depquery.core.data_structures import GlobalId, NodeMatches, QueryNode
from depquery.core.exceptions import TraversalCycleError
from depquery.engine.token_index import TokenIndex, as_tokenindex
from depquery.query.builder import as_global_ids, iter_nodes
from depquery.query.conditions import conditions_mask

logger = logging.getLogger(__name__)

# (узел запроса, токен) - одна привязка внутри совпадения
Binding = List[Tuple[QueryNode, GlobalId]]


class Matcher:
    """
    Рекурсивный поиск шаблона по индексу токенов.

    Для каждого узла запроса фильтр (lookup + g_id) считается один раз векторно
    по всей таблице, дальше обход дерева проверяет только членство в множестве.
    Вложенные запросы перебираются с возвратом: если обязательный сосед не
    находится, пробуется следующий кандидат предыдущего.
    """

    def __init__(self, index: TokenIndex, query: QueryNode, block: Any = None):
        self.index = index
        self.query = query
        self.block: FrozenSet[GlobalId] = as_global_ids(block) or frozenset()
        # id(node) -> допустимые gid; None - фильтра нет, подходит любой токен
        self._allowed: Dict[int, Optional[set]] = {}
        self._reach_cache: Dict[Tuple[int, GlobalId], List[GlobalId]] = {}

        for node in iter_nodes(query):
            self._allowed[id(node)] = self._filter_set(node)
            for fill_node in node.fills:
                self._allowed[id(fill_node)] = self._filter_set(fill_node)

    def _filter_set(self, node: QueryNode) -> Optional[set]:
        if not node.has_filter:
            return None
        ids = set(self.index.ids_where(conditions_mask(node.conditions, self.index.frame)))
        if node.g_id is not None:
            ids &= node.g_id
        return ids

    def _passes(self, node: QueryNode, gid: GlobalId) -> bool:
        allowed = self._allowed[id(node)]
        return allowed is None or gid in allowed

    def _step(self, gid: GlobalId, direction: str) -> List[GlobalId]:
        if direction == "children":
            return self.index.children_of(gid)
        parent = self.index.parent_of(gid)
        return [parent] if parent is not None else []

    def reachable(self, start: GlobalId, node: QueryNode,
                  stop: FrozenSet[GlobalId] = frozenset()) -> List[Tuple[GlobalId, int]]:
        """
        Токены в направлении узла до его глубины, прошедшие его фильтр,
        с расстоянием от start. Заблокированные токены и токены из stop
        не возвращаются и не проходятся насквозь.

        connected=False: сначала все узлы до depth, потом фильтр.
        connected=True: фильтр на каждом уровне, дальше идут только прошедшие.
        Узел без фильтра всегда считается связным.
        """
        visited = {start}
        frontier = [start]
        found: List[Tuple[GlobalId, int]] = []
        level = 0

        while frontier and (node.depth is None or level < node.depth):
            level += 1
            next_frontier = []
            for gid in frontier:
                for rel in self._step(gid, node.direction):
                    if rel in visited:
                        raise TraversalCycleError(rel)
                    visited.add(rel)
                    if rel in self.block or rel in stop:
                        continue
                    if node.connected and not self._passes(node, rel):
                        continue
                    next_frontier.append(rel)
            found.extend((gid, level) for gid in next_frontier)
            frontier = next_frontier

        if not node.connected:
            found = [(gid, level) for gid, level in found if self._passes(node, gid)]
        return found

    def _candidates(self, gid: GlobalId, node: QueryNode) -> List[GlobalId]:
        key = (id(node), gid)
        if key not in self._reach_cache:
            self._reach_cache[key] = [rel for rel, _ in self.reachable(gid, node)]
        return self._reach_cache[key]

    def _solutions(self, node: QueryNode, gid: GlobalId, used: FrozenSet[GlobalId]) -> Iterator[Binding]:
        """Все привязки поддерева node с корнем в gid (лениво, в порядке предпочтения)."""
        if node.save:
            used = used | {gid}
        yield from self._nested_solutions(node.nested, 0, gid, used, [(node, gid)])

    def _nested_solutions(self, subs: Tuple[QueryNode, ...], i: int, gid: GlobalId,
                          used: FrozenSet[GlobalId], acc: Binding) -> Iterator[Binding]:
        if i == len(subs):
            yield acc
            return

        sub = subs[i]
        candidates = self._candidates(gid, sub)

        if sub.negate:
            # Условие отсутствия: достаточно одного подходящего токена
            for cand in candidates:
                if next(self._solutions(sub, cand, used), None) is not None:
                    return
            yield from self._nested_solutions(subs, i + 1, gid, used, acc)
            return

        for cand in candidates:
            # Токен не может занять два сохраняемых слота одного совпадения;
            # несохраняемые узлы проверяют только существование
            if sub.save and cand in used:
                continue
            for sol in self._solutions(sub, cand, used):
                new_used = used | {g for node, g in sol if node.save}
                yield from self._nested_solutions(subs, i + 1, gid, new_used, acc + sol)

        if not sub.req:
            yield from self._nested_solutions(subs, i + 1, gid, used, acc)

    def _fill_rows(self, binding: Binding) -> List[Tuple[GlobalId, str, int]]:
        saved = frozenset(g for node, g in binding if node.save)
        rows = []
        for node, gid in binding:
            if not node.save:
                continue
            for fill_node in node.fills:
                # Заливка не заходит в другие сохраненные узлы того же совпадения
                for rel, level in self.reachable(gid, fill_node, stop=saved):
                    rows.append((rel, node.save, level))
        return rows

    def match(self, name: Optional[str] = None) -> NodeMatches:
        roles = tuple(self.query.save_names())
        root_ids = [gid for gid in self._root_candidates() if gid not in self.block]

        records = []
        match_ids = []
        for root in root_ids:
            try:
                binding = next(self._solutions(self.query, root, frozenset()), None)
                if binding is None:
                    continue
                fill_rows = self._fill_rows(binding)
            except TraversalCycleError as e:
                logger.warning(f"Candidate {tuple(root)} rejected: {e}")
                continue

            match_id = root.as_match_id()
            if name:
                match_id = f"{name}{config.QUERY_ID_SEP}{match_id}"
            match_ids.append(match_id)

            for node, gid in binding:
                if node.save:
                    records.append((*gid, match_id, node.save, 0))
            for gid, role, level in fill_rows:
                records.append((*gid, match_id, role, level))

        logger.debug(f"{len(root_ids)} root candidates, {len(match_ids)} matches")

        if not records:
            result = NodeMatches.empty_result(roles)
            result.match_ids = tuple(match_ids)
            return result

        nodes = pd.DataFrame.from_records(records, columns=config.NODE_COLUMNS)
        # Один токен на роль в совпадении: оставляем ближайший уровень заливки
        nodes = (
            nodes.sort_values(config.FILL_LEVEL_COL, kind="mergesort")
            .drop_duplicates(subset=config.ID_COLUMNS + [config.MATCH_ID_COL, config.ROLE_COL])
            .sort_index()
            .reset_index(drop=True)
        )
        return NodeMatches(nodes=nodes, roles=roles, match_ids=tuple(match_ids))

    def _root_candidates(self) -> List[GlobalId]:
        allowed = self._allowed[id(self.query)]
        if allowed is None:
            return list(self.index.global_ids)
        return [gid for gid in self.index.global_ids if gid in allowed]


def find_nodes(tokens: Union[pd.DataFrame, TokenIndex], query: QueryNode,
               block: Any = None, name: Optional[str] = None) -> NodeMatches:
    """
    Находит все совпадения запроса.

    Args:
        tokens: DataFrame токенов или TokenIndex.
        query: запрос, созданный через tquery().
        block: глобальные id (итерируемое тройек или DataFrame doc_id, sentence, token_id),
               которые считаются отсутствующими
               (не кандидаты и не проходятся при обходе).
        name: если задано, id совпадений получают префикс "name#".

    Returns:
        NodeMatches: одна строка на сохраненный токен каждого совпадения.
        Пустой результат - не ошибка, проверяйте .empty.
    """
    index = as_tokenindex(tokens)
    return Matcher(index, query, block=block).match(name=name)
