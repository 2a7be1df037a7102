# depquery/core/interfaces.py
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import pandas as pd

from .data_structures import GlobalId


class BaseTokenStore(ABC):
    """
    Индексированное хранилище токенов: лес деревьев, по одному на предложение.
    Только чтение, пока идет сессия запросов.
    """

    @property
    @abstractmethod
    def frame(self) -> pd.DataFrame:
        """Таблица токенов, отсортированная по (doc_id, sentence, token_id)."""
        pass

    @property
    @abstractmethod
    def global_ids(self) -> Sequence[GlobalId]:
        """Глобальные id в порядке строк frame."""
        pass

    @abstractmethod
    def children_of(self, gid: GlobalId) -> List[GlobalId]:
        """Прямые потомки в порядке token_id."""
        pass

    @abstractmethod
    def parent_of(self, gid: GlobalId) -> Optional[GlobalId]:
        """Родитель или None для корня."""
        pass
