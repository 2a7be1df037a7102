from .loader import ConlluTokenLoader, load_conllu
from .validators import SentenceValidator, TokenFrameValidator, ValidationResult
