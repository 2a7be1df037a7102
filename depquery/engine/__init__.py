from .matcher import Matcher, find_nodes
from .runner import apply_queries
from .token_index import TokenIndex, as_tokenindex
