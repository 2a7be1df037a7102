import logging
from pathlib import Path
from typing import Any, Dict, Generator, Iterable, List, Optional, TextIO, Union

import pandas as pd
from conllu import parse, parse_incr
from conllu.models import TokenList
from tqdm import tqdm

from depquery import config
from depquery.ingestion.validators import SentenceValidator

logger = logging.getLogger(__name__)


def _feats_to_str(feats: Optional[Dict[str, str]]) -> Optional[str]:
    if not feats:
        return None
    return "|".join(f"{k}={v}" for k, v in feats.items())


class ConlluTokenLoader:
    """
    Загрузчик CoNLL-U в плоскую таблицу токенов для TokenIndex.

    Колонки: doc_id, sentence, token_id, token, lemma, upos, xpos, feats,
    parent, relation, POS (копия upos или xpos) и sent_id из метаданных.
    Мульти-словные токены и пустые узлы пропускаются: в дерево они не входят.
    """

    def __init__(self, pos_field: str = "upos", strict: bool = True, show_progress: bool = False):
        if pos_field not in ("upos", "xpos"):
            raise ValueError(f"pos_field must be 'upos' or 'xpos', got {pos_field!r}")
        self.pos_field = pos_field
        self.strict = strict
        self.show_progress = show_progress
        self.skipped = 0

    def iter_sentences(self, token_lists: Iterable[TokenList], doc_id: Any) -> Generator[List[Dict[str, Any]], None, None]:
        """
        Потоковый генератор строк по предложениям с валидацией на лету.
        Метаполе newdoc id начинает новый документ и сбрасывает нумерацию.
        """
        sentence = 0
        for token_list in tqdm(token_lists, desc="Sentences", disable=not self.show_progress):
            if "newdoc id" in token_list.metadata:
                doc_id = token_list.metadata["newdoc id"]
                sentence = 0
            sentence += 1

            val_res = SentenceValidator.validate_sentence(token_list, strict=self.strict)
            if not val_res.is_valid:
                # Логируем, но не падаем
                sid = token_list.metadata.get("sent_id", sentence)
                logger.warning(f"Skipped invalid sentence {sid} of {doc_id}: {val_res.errors}")
                self.skipped += 1
                continue

            rows = []
            for token in token_list:
                if not isinstance(token["id"], int):
                    continue
                rows.append({
                    config.DOC_COL: doc_id,
                    config.SENTENCE_COL: sentence,
                    config.TOKEN_COL: token["id"],
                    "token": token["form"],
                    "lemma": token["lemma"],
                    "upos": token["upos"],
                    "xpos": token["xpos"],
                    "feats": _feats_to_str(token["feats"]),
                    config.PARENT_COL: token["head"],
                    config.RELATION_COL: token["deprel"],
                    "POS": token[self.pos_field],
                    "sent_id": token_list.metadata.get("sent_id"),
                })
            yield rows

    def _to_frame(self, token_lists: Iterable[TokenList], doc_id: Any) -> pd.DataFrame:
        self.skipped = 0
        rows = [row for sent in self.iter_sentences(token_lists, doc_id) for row in sent]
        frame = pd.DataFrame(rows)
        if frame.empty:
            logger.warning(f"No valid sentences loaded for {doc_id}")
            return frame
        frame[config.PARENT_COL] = frame[config.PARENT_COL].astype(int)
        logger.info(f"Loaded {len(frame)} tokens from {frame[config.SENTENCE_COL].nunique()} sentences "
                    f"({self.skipped} skipped)")
        return frame

    def load(self, source: Union[str, Path, TextIO], doc_id: Optional[Any] = None) -> pd.DataFrame:
        """
        Читает CoNLL-U файл (путь или открытый поток) лениво через parse_incr.
        doc_id по умолчанию - имя файла без расширения.
        """
        if isinstance(source, (str, Path)):
            path = Path(source)
            logger.info(f"Parsing file: {path.name}")
            with open(path, "r", encoding="utf-8") as f:
                return self._to_frame(parse_incr(f), doc_id or path.stem)
        return self._to_frame(parse_incr(source), doc_id or "doc")

    def loads(self, text: str, doc_id: Any = "doc") -> pd.DataFrame:
        """То же для строки с CoNLL-U."""
        return self._to_frame(parse(text), doc_id)


def load_conllu(source: Union[str, Path, TextIO], doc_id: Optional[Any] = None,
                pos_field: str = "upos", strict: bool = True) -> pd.DataFrame:
    return ConlluTokenLoader(pos_field=pos_field, strict=strict).load(source, doc_id=doc_id)
