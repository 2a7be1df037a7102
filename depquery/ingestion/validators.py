import logging
from typing import List

import networkx as nx
import pandas as pd
from conllu import TokenList

from depquery import config

logger = logging.getLogger(__name__)


class ValidationResult:
    """DTO для результатов валидации."""

    def __init__(self, is_valid: bool, errors: List[str], warnings: List[str] = None):
        self.is_valid = is_valid
        self.errors = errors
        self.warnings = warnings or []

    def __repr__(self):
        return f"ValidationResult(is_valid={self.is_valid}, errors={len(self.errors)}, warnings={len(self.warnings)})"


class SentenceValidator:
    """
    Проверка одного предложения CoNLL-U перед загрузкой в индекс:
    HEAD ссылается на существующий токен, есть корень, нет циклов.
    """

    @staticmethod
    def validate_sentence(token_list: TokenList, strict: bool = True) -> ValidationResult:
        errors = []
        warnings = []

        # Мульти-словные токены (1-2) и пустые узлы (1.1) в дерево не входят
        tokens = [t for t in token_list if isinstance(t["id"], int)]
        ids = {t["id"] for t in tokens}

        roots = 0
        graph = nx.DiGraph()
        for token in tokens:
            token_id = token["id"]
            graph.add_node(token_id)

            if not token["form"]:
                warnings.append(f"Token {token_id}: empty FORM")

            head = token["head"]
            if head is None:
                errors.append(f"Token {token_id}: missing HEAD")
            elif head == 0:
                roots += 1
            elif head not in ids:
                errors.append(f"Token {token_id}: HEAD {head} refers to a missing token")
            else:
                graph.add_edge(head, token_id)

        if roots == 0:
            errors.append("No root token (HEAD=0)")
        elif roots > 1:
            # Несколько корней встречаются в "грязных" корпусах - ошибка только в strict
            msg = f"Found {roots} roots (expected 1)"
            if strict:
                errors.append(msg)
            else:
                warnings.append(msg)

        try:
            cycle = nx.find_cycle(graph)
            errors.append(f"Cycle in dependency tree: {cycle}")
        except nx.NetworkXNoCycle:
            pass

        return ValidationResult(len(errors) == 0, errors, warnings)


class TokenFrameValidator:
    """
    Проверка таблицы токенов целиком (для данных не из CoNLL-U).
    Циклы не делают таблицу невалидной: движок сам защищается от них,
    но о них нужно знать заранее.
    """

    @staticmethod
    def validate(tokens: pd.DataFrame) -> ValidationResult:
        errors = []
        warnings = []

        missing = [c for c in config.REQUIRED_COLUMNS if c not in tokens.columns]
        if missing:
            errors.append(f"Missing required columns: {', '.join(missing)}")
            return ValidationResult(False, errors)

        n_dup = int(tokens.duplicated(subset=config.ID_COLUMNS).sum())
        if n_dup:
            errors.append(f"{n_dup} duplicate (doc_id, sentence, token_id) rows")

        graph = nx.DiGraph()
        known = set(tokens[config.ID_COLUMNS].itertuples(index=False, name=None))
        dangling = 0
        for doc_id, sentence, token_id, parent in tokens[config.ID_COLUMNS + [config.PARENT_COL]].itertuples(
                index=False, name=None):
            node = (doc_id, sentence, token_id)
            graph.add_node(node)
            if pd.isna(parent) or parent in config.ROOT_PARENTS:
                continue
            head = (doc_id, sentence, parent)
            if head not in known:
                dangling += 1
                continue
            graph.add_edge(head, node)

        if dangling:
            warnings.append(f"{dangling} tokens reference a parent outside their sentence")

        cyclic = sorted({
            (node[0], node[1])
            for component in nx.strongly_connected_components(graph)
            if len(component) > 1
            for node in component
        } | {(u[0], u[1]) for u, _ in nx.selfloop_edges(graph)}, key=str)
        if cyclic:
            warnings.append(f"Parent cycles in {len(cyclic)} sentences: {cyclic[:5]}")

        for msg in warnings:
            logger.warning(msg)
        return ValidationResult(len(errors) == 0, errors, warnings)
