import logging
from typing import Any, Optional, Sequence, Union

import pandas as pd

from depquery import config
from depquery.core.data_structures import NodeMatches
from depquery.core.exceptions import EmptyBindingsError, MissingColumnsError
from depquery.engine.runner import Queries, apply_queries
from depquery.engine.token_index import TokenIndex, as_tokenindex

logger = logging.getLogger(__name__)

Tokens = Union[pd.DataFrame, TokenIndex]


def _join(values: pd.Series) -> str:
    return config.CONCAT_DELIMITER.join(str(v) for v in values)


def prepare_nodes(nodes: NodeMatches, unique_fill: bool = False, concat_dup: bool = True,
                  use: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Готовит длинную таблицу совпадений к слиянию с токенами.

    1. use: оставить только указанные роли. Роли, которых нет ни в одном
       запросе, логируются и ничего не дают.
    2. unique_fill: прямое совпадение (уровень 0) всегда побеждает заливку;
       среди заливок остается ближайший предок (минимальный уровень, при
       равенстве - первая строка).
    3. concat_dup: оставшиеся дубли по токену склеиваются через запятую
       в порядке строк. Иначе дубли остаются как есть.
    """
    key = config.ID_COLUMNS
    df = nodes.nodes.copy()

    if use is not None:
        missing = [role for role in use if role not in nodes.roles]
        if missing:
            logger.warning(f"Save names not found in any query, nothing to add: {', '.join(missing)}")
        df = df[df[config.ROLE_COL].isin(list(use))]

    if unique_fill and not df.empty:
        level = df[config.FILL_LEVEL_COL]
        nearest = df.groupby(key, sort=False)[config.FILL_LEVEL_COL].transform("min")
        df = df[(level == 0) | (level == nearest)]
        tie = df.duplicated(subset=key) & (df[config.FILL_LEVEL_COL] > 0)
        df = df[~tie]

    if concat_dup and df.duplicated(subset=key).any():
        value_cols = [c for c in df.columns if c not in key]
        df = df.groupby(key, sort=False, as_index=False).agg({c: _join for c in value_cols})

    return df.reset_index(drop=True)


def _null_annotation(frame: pd.DataFrame, column: str, show_fill: bool) -> pd.DataFrame:
    frame = frame.copy()
    frame[column] = None
    frame[column + config.ID_SUFFIX] = None
    if show_fill:
        frame[column + config.FILL_SUFFIX] = None
    return frame


def annotate_nodes(tokens: Tokens, nodes: NodeMatches, column: str, unique_fill: bool = False,
                   concat_dup: bool = True, show_fill: bool = False,
                   use: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Добавляет к токенам колонки <column> (роль) и <column>_id (id совпадения).

    Args:
        tokens: DataFrame токенов или TokenIndex.
        nodes: результат find_nodes() или apply_queries().
        column: имя колонки аннотации; существующие колонки с этими именами заменяются.
        unique_fill: только ближайшая заливка, прямые совпадения не заливаются.
        concat_dup: склеивать дубли через запятую (True) или дублировать строки токенов (False).
        show_fill: добавить колонку <column>_fill с уровнем заливки.
        use: аннотировать только эти роли.

    Raises:
        EmptyBindingsError: в запросах нет ни одного save - аннотировать нечего.
    """
    if not nodes.roles:
        raise EmptyBindingsError()

    frame = as_tokenindex(tokens).frame
    id_column = column + config.ID_SUFFIX
    fill_column = column + config.FILL_SUFFIX
    frame = frame.drop(columns=[c for c in (column, id_column, fill_column) if c in frame.columns])

    prepared = prepare_nodes(nodes, unique_fill=unique_fill, concat_dup=concat_dup, use=use)
    if prepared.empty:
        logger.warning("No nodes to annotate, adding empty columns")
        return _null_annotation(frame, column, show_fill)

    keep = config.ID_COLUMNS + [config.ROLE_COL, config.MATCH_ID_COL, config.FILL_LEVEL_COL]
    prepared = prepared[keep].rename(columns={
        config.ROLE_COL: column,
        config.MATCH_ID_COL: id_column,
        config.FILL_LEVEL_COL: fill_column,
    })
    if not show_fill:
        prepared = prepared.drop(columns=[fill_column])

    annotated = frame.merge(prepared, on=config.ID_COLUMNS, how="left")
    n_annotated = int(annotated[column].notna().sum())
    logger.info(f"Annotated {n_annotated} of {len(annotated)} token rows in column '{column}'")
    return annotated


def annotate(tokens: Tokens, queries: Queries, column: str, as_chain: bool = True,
             block: Any = None, unique_fill: bool = False,
             concat_dup: bool = True, show_fill: bool = False, verbose: bool = False) -> pd.DataFrame:
    """
    Применяет запросы и сразу аннотирует токены (apply_queries + annotate_nodes).
    Если совпадений нет, колонки добавляются пустыми.
    """
    index = as_tokenindex(tokens)
    nodes = apply_queries(index, queries, as_chain=as_chain, block=block, verbose=verbose)

    if not nodes.roles:
        raise EmptyBindingsError()
    if nodes.nodes.empty:
        logger.warning("No nodes found")
        return _null_annotation(index.frame, column, show_fill)

    return annotate_nodes(index, nodes, column, unique_fill=unique_fill,
                          concat_dup=concat_dup, show_fill=show_fill)


def get_nodes(tokens: Tokens, nodes: NodeMatches, use: Optional[Sequence[str]] = None,
              token_cols: Sequence[str] = ("token",)) -> pd.DataFrame:
    """
    Длинная таблица совпадений с приклеенными колонками токенов.
    Используется ближайшая заливка, дубли склеиваются.
    """
    frame = as_tokenindex(tokens).frame
    token_cols = list(token_cols)

    missing = [c for c in token_cols if c not in frame.columns]
    if missing:
        raise MissingColumnsError(missing, context="tokens (token_cols)")

    columns = config.ID_COLUMNS + [config.MATCH_ID_COL, config.ROLE_COL] + token_cols
    prepared = prepare_nodes(nodes, unique_fill=True, concat_dup=True, use=use)
    if prepared.empty:
        return pd.DataFrame(columns=columns)

    out = prepared.merge(frame, on=config.ID_COLUMNS)
    return out[columns]
