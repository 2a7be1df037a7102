import logging
import re
from typing import Any, Dict, Optional, Tuple

import pandas as pd

from depquery import config
from depquery.core.data_structures import Condition
from depquery.core.exceptions import MissingColumnsError, UnsupportedMatchModeError

logger = logging.getLogger(__name__)

WILDCARD_CHARS = ("*", "?")


def _as_terms(value: Any) -> Tuple[Any, ...]:
    """Приводит значение lookup-а к кортежу термов."""
    if isinstance(value, (str, bytes)):
        return (value,)
    if isinstance(value, (set, frozenset)):
        # Порядок множества не детерминирован - сортируем для стабильного repr
        return tuple(sorted(value, key=str))
    if isinstance(value, (list, tuple, pd.Series, pd.Index)):
        return tuple(value)
    return (value,)


def parse_lookup(name: str, value: Any) -> Optional[Condition]:
    """
    Разбирает пару имя-значение вида lemma__NRI=[...] в Condition.

    Флаги (порядок не важен):
        N - отрицание, F - точное совпадение без wildcard,
        I - без учета регистра, R - регулярное выражение.

    Returns:
        Condition или None, если value is None (условие просто пропускается).
    """
    if value is None:
        return None

    column, sep, flags = name.rpartition(config.FLAG_SEP)
    if not sep:
        column, flags = name, ""
    elif not flags:
        raise UnsupportedMatchModeError(name, flags)

    unknown = set(flags) - config.SUPPORTED_FLAGS
    if unknown:
        raise UnsupportedMatchModeError(name, flags)
    if config.FLAG_FIXED in flags and config.FLAG_REGEX in flags:
        # F и R противоречат друг другу
        raise UnsupportedMatchModeError(name, flags)

    terms = _as_terms(value)
    if not terms:
        logger.debug(f"Lookup '{name}' has no terms, it will match nothing")

    return Condition(
        column=column,
        terms=terms,
        negate=config.FLAG_NEGATE in flags,
        fixed=config.FLAG_FIXED in flags,
        ignore_case=config.FLAG_IGNORE_CASE in flags,
        regex=config.FLAG_REGEX in flags,
    )


def parse_lookups(lookup: Dict[str, Any]) -> Tuple[Condition, ...]:
    conditions = []
    for name, value in lookup.items():
        cond = parse_lookup(name, value)
        if cond is not None:
            conditions.append(cond)
    return tuple(conditions)


def _wildcard_to_regex(term: str) -> str:
    # * - любая последовательность, ? - ровно один символ
    escaped = re.escape(term)
    return escaped.replace(r"\*", ".*").replace(r"\?", ".")


def _has_wildcard(terms: Tuple[Any, ...]) -> bool:
    return any(isinstance(t, str) and any(w in t for w in WILDCARD_CHARS) for t in terms)


def condition_mask(cond: Condition, frame: pd.DataFrame) -> pd.Series:
    """
    Векторная проверка условия по всей таблице токенов.
    NA никогда не проходит позитивную проверку (и, значит, проходит отрицательную).
    """
    if cond.column not in frame.columns:
        raise MissingColumnsError([cond.column], context="tokens (query lookup)")

    values = frame[cond.column]
    present = values.notna()

    if not cond.terms:
        mask = pd.Series(False, index=frame.index)
    elif cond.regex:
        pattern = "|".join(f"(?:{t})" for t in cond.terms)
        mask = values.astype("string").str.contains(pattern, regex=True, case=not cond.ignore_case, na=False)
    elif cond.fixed or not _has_wildcard(cond.terms):
        if cond.ignore_case:
            lowered = {str(t).lower() for t in cond.terms}
            mask = values.astype("string").str.lower().isin(lowered)
        else:
            mask = values.isin(list(cond.terms))
    else:
        pattern = "|".join(f"(?:{_wildcard_to_regex(str(t))})" for t in cond.terms)
        mask = values.astype("string").str.fullmatch(pattern, case=not cond.ignore_case, na=False)

    mask = mask.fillna(False).astype(bool) & present
    if cond.negate:
        mask = ~mask
    return mask


def conditions_mask(conditions: Tuple[Condition, ...], frame: pd.DataFrame) -> pd.Series:
    """AND всех условий узла."""
    mask = pd.Series(True, index=frame.index)
    for cond in conditions:
        mask &= condition_mask(cond, frame)
    return mask
