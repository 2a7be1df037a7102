"""
Запросы из YAML / словарей.

    queries:
      direct:
        lemma: [say, tell]
        save: verb
        fill: true
        children:
          - relation: [nsubj, agent]
            save: source
            fill: true
          - save: quote
            fill: true

Служебные ключи: save, label, req, depth, connected, fill, children, parents,
not_children, not_parents. Все остальные ключи - lookup-условия (lemma__I и т.п.).
depth: inf - без ограничения.
"""
import logging
import math
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import yaml

from depquery.core.data_structures import QueryNode
from depquery.core.exceptions import QueryConstructionError
from depquery.query import builder

logger = logging.getLogger(__name__)

NESTED_KEYS: Dict[str, Callable[..., QueryNode]] = {
    "children": builder.children,
    "parents": builder.parents,
    "not_children": builder.not_children,
    "not_parents": builder.not_parents,
}
OPTION_KEYS = {"save", "req", "depth", "connected"}


def _depth(value: Any) -> Any:
    if isinstance(value, str) and value.lower() in ("inf", "infinite", "unbounded"):
        return math.inf
    return value


def _fill_from_value(value: Any) -> List[QueryNode]:
    if value is None or value is False:
        return []
    if value is True:
        return [builder.fill()]
    if isinstance(value, dict):
        spec = dict(value)
        if "depth" in spec:
            spec["depth"] = _depth(spec["depth"])
        return [builder.fill(**spec)]
    raise QueryConstructionError(f"fill must be true/false or a mapping, got {type(value).__name__}")


def _split_spec(spec: Dict[str, Any]):
    nested: List[QueryNode] = []
    options: Dict[str, Any] = {}
    lookup: Dict[str, Any] = {}

    for key, value in spec.items():
        if key in NESTED_KEYS:
            items = value if isinstance(value, list) else [value]
            for item in items:
                nested.append(node_from_dict(item, key))
        elif key == "fill":
            nested.extend(_fill_from_value(value))
        elif key in OPTION_KEYS:
            options[key] = _depth(value) if key == "depth" else value
        else:
            lookup[key] = value
    return nested, options, lookup


def node_from_dict(spec: Dict[str, Any], kind: str) -> QueryNode:
    if not isinstance(spec, dict):
        raise QueryConstructionError(f"{kind} entry must be a mapping, got {type(spec).__name__}")
    nested, options, lookup = _split_spec(spec)
    if kind.startswith("not_") and "req" in options:
        raise QueryConstructionError(f"{kind} is always required, 'req' is not allowed")
    return NESTED_KEYS[kind](*nested, **options, **lookup)


def query_from_dict(spec: Dict[str, Any], label: str = None) -> QueryNode:
    """Корневой запрос из словаря."""
    if not isinstance(spec, dict):
        raise QueryConstructionError(f"Query must be a mapping, got {type(spec).__name__}")
    spec = dict(spec)
    label = spec.pop("label", label)
    nested, options, lookup = _split_spec(spec)

    unexpected = set(options) - {"save"}
    if unexpected:
        raise QueryConstructionError(f"Options not allowed on the root query: {', '.join(sorted(unexpected))}")
    return builder.tquery(*nested, save=options.get("save"), label=label, **lookup)


def load_queries(path: Union[str, Path]) -> Dict[str, QueryNode]:
    """Читает YAML с секцией queries: имя -> запрос. Порядок запросов сохраняется."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    specs = data.get("queries", data)
    if not isinstance(specs, dict):
        raise QueryConstructionError(f"{path.name}: 'queries' must be a mapping of name -> query")

    queries = {name: query_from_dict(spec, label=name) for name, spec in specs.items()}
    logger.info(f"Loaded {len(queries)} queries from {path.name}")
    return queries
