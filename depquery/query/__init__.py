from .builder import children, fill, not_children, not_parents, parents, tquery
from .serialization import load_queries, query_from_dict
