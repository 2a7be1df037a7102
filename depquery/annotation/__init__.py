from .annotator import annotate, annotate_nodes, get_nodes, prepare_nodes
