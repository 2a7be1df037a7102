"""
depquery - поиск шаблонов в деревьях зависимостей и разметка токенов по найденному.

    tokens = load_conllu("news.conllu")
    quotes = tquery(children(relation="nsubj", save="source"),
                    lemma=["say", "tell"], save="verb")
    annotated = annotate(tokens, quotes, column="quote")
"""
from .annotation import annotate, annotate_nodes, get_nodes
from .core import GlobalId, NodeMatches, QueryNode
from .engine import TokenIndex, apply_queries, as_tokenindex, find_nodes
from .ingestion import load_conllu
from .query import children, fill, load_queries, not_children, not_parents, parents, tquery

__version__ = "0.1.0"
