import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from depquery import config
from depquery.core.data_structures import GlobalId
from depquery.core.exceptions import DuplicateTokenError, MissingColumnsError
from depquery.core.interfaces import BaseTokenStore

logger = logging.getLogger(__name__)


def _is_root_parent(value) -> bool:
    return pd.isna(value) or value in config.ROOT_PARENTS


class TokenIndex(BaseTokenStore):
    """
    Индекс токенов по глобальному id.
    Строится один раз: gid -> строка, gid -> родитель, родитель -> потомки.
    После построения не изменяется.
    """

    def __init__(self, tokens: pd.DataFrame):
        missing = [c for c in config.REQUIRED_COLUMNS if c not in tokens.columns]
        if missing:
            raise MissingColumnsError(missing)

        n_dup = int(tokens.duplicated(subset=config.ID_COLUMNS).sum())
        if n_dup:
            raise DuplicateTokenError(n_dup)

        self._frame = tokens.sort_values(config.ID_COLUMNS, kind="mergesort").reset_index(drop=True)

        # .tolist() дает питоновские int/str вместо numpy-скаляров - иначе хэши GlobalId расходятся
        docs = self._frame[config.DOC_COL].tolist()
        sents = self._frame[config.SENTENCE_COL].tolist()
        toks = self._frame[config.TOKEN_COL].tolist()
        parents = self._frame[config.PARENT_COL].tolist()

        self._gids: List[GlobalId] = [GlobalId(d, int(s), int(t)) for d, s, t in zip(docs, sents, toks)]
        self._rows: Dict[GlobalId, int] = {gid: i for i, gid in enumerate(self._gids)}
        self._parent: Dict[GlobalId, GlobalId] = {}
        self._children: Dict[GlobalId, List[GlobalId]] = defaultdict(list)

        dangling = 0
        for gid, parent in zip(self._gids, parents):
            if _is_root_parent(parent):
                continue
            parent_gid = GlobalId(gid.doc_id, gid.sentence, int(parent))
            if parent_gid not in self._rows:
                # Ссылка на несуществующий токен - считаем узел корнем
                dangling += 1
                continue
            self._parent[gid] = parent_gid
            # Строки уже отсортированы по token_id, порядок потомков стабилен
            self._children[parent_gid].append(gid)

        if dangling:
            logger.warning(f"{dangling} tokens reference a missing parent; treated as roots")

        logger.debug(f"Indexed {len(self._gids)} tokens")

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame

    @property
    def global_ids(self) -> Sequence[GlobalId]:
        return self._gids

    def __len__(self):
        return len(self._gids)

    def __contains__(self, gid) -> bool:
        return gid in self._rows

    def row_of(self, gid: GlobalId) -> int:
        return self._rows[gid]

    def children_of(self, gid: GlobalId) -> List[GlobalId]:
        return self._children.get(gid, [])

    def parent_of(self, gid: GlobalId) -> Optional[GlobalId]:
        return self._parent.get(gid)

    def ids_where(self, mask: pd.Series) -> List[GlobalId]:
        """Глобальные id строк, где mask истинна, в порядке индекса."""
        return [self._gids[i] for i in mask.to_numpy().nonzero()[0]]


def as_tokenindex(tokens: Union[pd.DataFrame, TokenIndex]) -> TokenIndex:
    """Принимает готовый индекс или DataFrame с колонками doc_id, sentence, token_id, parent, relation."""
    if isinstance(tokens, TokenIndex):
        return tokens
    if not isinstance(tokens, pd.DataFrame):
        raise TypeError(f"Expected a pandas DataFrame or TokenIndex, got {type(tokens).__name__}")
    return TokenIndex(tokens)
