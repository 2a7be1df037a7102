from .dutch_alpino import DUTCH_SAY_VERBS, alpino_clause_queries, alpino_quote_queries
from .english_corenlp import CORENLP_POS_FIELD, ENGLISH_SAY_VERBS, corenlp_clause_queries, corenlp_quote_queries

QUERY_SETS = {
    "english_quotes": corenlp_quote_queries,
    "english_clauses": corenlp_clause_queries,
    "dutch_quotes": alpino_quote_queries,
    "dutch_clauses": alpino_clause_queries,
}

# Колонка CoNLL-U, из которой набор ожидает POS; остальные берут ее из конфига
QUERY_SET_POS_FIELDS = {
    "english_quotes": CORENLP_POS_FIELD,
    "english_clauses": CORENLP_POS_FIELD,
}
