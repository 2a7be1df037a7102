import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

# Определение базовых путей относительно корня проекта
BASE_DIR = Path(__file__).resolve().parent.parent
CONFIG_DIR = BASE_DIR / "config"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "depquery.yaml"

# Колонки, без которых индекс токенов не строится
DOC_COL = "doc_id"
SENTENCE_COL = "sentence"
TOKEN_COL = "token_id"
PARENT_COL = "parent"
RELATION_COL = "relation"

ID_COLUMNS = [DOC_COL, SENTENCE_COL, TOKEN_COL]
REQUIRED_COLUMNS = ID_COLUMNS + [PARENT_COL, RELATION_COL]

# Служебные колонки таблицы совпадений (node-match table)
MATCH_ID_COL = ".ID"
ROLE_COL = ".ROLE"
FILL_LEVEL_COL = ".FILL_LEVEL"
QUERY_COL = ".QUERY"
NODE_COLUMNS = ID_COLUMNS + [MATCH_ID_COL, ROLE_COL, FILL_LEVEL_COL]

# Разделитель при склейке дублей (concat_dup)
CONCAT_DELIMITER = ","
# Разделитель частей глобального id в id совпадения: "doc.sentence.token"
GLOBAL_ID_SEP = "."
# Разделитель между именем запроса и id совпадения: "direct#doc.1.3"
QUERY_ID_SEP = "#"

# Суффиксы аннотационных колонок
ID_SUFFIX = "_id"
FILL_SUFFIX = "_fill"

# Флаги режима поиска: lemma__NRI
FLAG_SEP = "__"
FLAG_NEGATE = "N"
FLAG_FIXED = "F"
FLAG_IGNORE_CASE = "I"
FLAG_REGEX = "R"
SUPPORTED_FLAGS = {FLAG_NEGATE, FLAG_FIXED, FLAG_IGNORE_CASE, FLAG_REGEX}

# Значения parent, означающие корень предложения
ROOT_PARENTS = {0, -1}

DEFAULTS: Dict[str, Any] = {
    "columns": {
        "pos_field": "upos",
    },
    "annotate": {
        "as_chain": True,
        "unique_fill": False,
        "concat_dup": True,
        "show_fill": False,
    },
    "validation_level": "strict",
}


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Читает YAML-конфиг и накладывает его поверх DEFAULTS.
    Если файла нет, возвращаются значения по умолчанию.
    """
    cfg = {key: (dict(value) if isinstance(value, dict) else value) for key, value in DEFAULTS.items()}
    path = Path(path) if path else DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.debug(f"Config {path} not found, using defaults")
        return cfg

    with open(path, "r", encoding="utf-8") as f:
        user_cfg = yaml.safe_load(f) or {}

    for key, value in user_cfg.items():
        # Вложенные секции мержим поверх дефолтов, скаляры заменяем
        if isinstance(value, dict) and isinstance(cfg.get(key), dict):
            cfg[key].update(value)
        else:
            cfg[key] = value

    logger.info(f"Loaded config from {path}")
    return cfg
