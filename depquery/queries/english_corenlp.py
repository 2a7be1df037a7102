"""
Наборы запросов для английских разборов CoreNLP (теги PTB в колонке POS).
Порядок запросов в словаре важен: при as_chain более ранние имеют приоритет.
"""
from typing import Dict, Iterable, Optional

from depquery.core.data_structures import QueryNode
from depquery.query.builder import children, fill, parents, tquery

ENGLISH_SAY_VERBS = [
    "tell", "show", "acknowledge", "admit", "affirm", "allege", "announce", "assert", "attest", "avow",
    "claim", "comment", "concede", "confirm", "declare", "deny", "exclaim", "insist", "mention", "note",
    "proclaim", "promise", "remark", "report", "say", "speak", "state", "suggest", "talk", "write", "add",
]

CORENLP_QUOTE_RELS = ["ccomp", "dep", "parataxis", "dobj", "nsubjpass", "advcl"]
CORENLP_SUBJECT_RELS = ["su", "nsubj", "agent", "nmod:agent"]

CORENLP_VERB_POS = ["MD", "VB", "VBD", "VBG", "VBN", "VBP", "VBZ"]
CORENLP_NOUN_POS = ["NN", "NNS", "FW"]

# Условия POS="VB*" рассчитаны на теги PTB, в CoNLL-U это колонка xpos
CORENLP_POS_FIELD = "xpos"


def corenlp_quote_queries(verbs: Optional[Iterable[str]] = ENGLISH_SAY_VERBS,
                          exclude_verbs: Optional[Iterable[str]] = None) -> Dict[str, QueryNode]:
    """
    Запросы цитат: source (кто говорит), verb (глагол речи), quote (что сказано).

    Args:
        verbs: глаголы речи; None - любые глаголы.
        exclude_verbs: исключаемые глаголы; None - ничего не исключать.
    """
    verbs = list(verbs) if verbs is not None else None
    exclude_verbs = list(exclude_verbs) if exclude_verbs is not None else None

    # John says that ...
    direct = tquery(fill(),
                    children(fill(), relation=CORENLP_SUBJECT_RELS, save="source"),
                    children(fill(), save="quote"),
                    lemma=verbs, lemma__N=exclude_verbs, save="verb", label="direct")

    # John is expected to say ...
    nosrc = tquery(children(fill(), relation=CORENLP_SUBJECT_RELS, save="source"),
                   children(fill(),
                            children(fill(), relation=CORENLP_QUOTE_RELS, save="quote"),
                            lemma=verbs, lemma__N=exclude_verbs, relation="xcomp", save="verb"),
                   POS="VB*", label="nosrc")

    # ..., according to John
    according = tquery(fill(),
                       children(fill(),
                                children(fill(), save="verb"),
                                relation="nmod:according_to", save="source"),
                       save="quote", label="according")

    return {"direct": direct, "nosrc": nosrc, "according": according}


def corenlp_clause_queries(verbs: Optional[Iterable[str]] = None,
                           exclude_verbs: Optional[Iterable[str]] = ENGLISH_SAY_VERBS,
                           with_subject: bool = True, with_object: bool = False,
                           sub_req: bool = True, ob_req: bool = False) -> Dict[str, QueryNode]:
    """
    Запросы клауз: subject - predicate (- object).

    Args:
        verbs: глаголы-предикаты; None - любые глаголы.
        exclude_verbs: по умолчанию глаголы речи, чтобы не пересекаться с цитатами.
        with_subject / with_object: сохранять ли subject / object как роли.
        sub_req / ob_req: обязательны ли subject / object.
    """
    subject_name = "subject" if with_subject else None
    object_name = "object" if with_object else None
    verbs = list(verbs) if verbs is not None else None
    exclude_verbs = list(exclude_verbs) if exclude_verbs is not None else None

    direct = tquery(fill(),
                    children(fill(), relation=["su", "nsubj", "agent"], save=subject_name, req=sub_req),
                    children(fill(), relation="dobj", save=object_name, req=ob_req),
                    POS="VB*", lemma=verbs, lemma__N=exclude_verbs, save="predicate", label="direct")

    passive = tquery(fill(),
                     children(relation="auxpass"),
                     children(fill(), relation="nmod:agent", save=subject_name, req=False),
                     children(fill(), relation="nsubjpass", save=object_name, req=ob_req),
                     POS="VB*", lemma=verbs, lemma__N=exclude_verbs, save="predicate", label="passive")

    # He is a fool: предикат - родитель связки (relation="cop")
    copula_direct = tquery(parents(fill(),
                                   children(fill(), relation=["su", "nsubj", "agent"], save=subject_name, req=sub_req),
                                   children(fill(), relation="dobj", save=object_name, req=ob_req),
                                   save="predicate"),
                           POS="VB*", lemma=verbs, lemma__N=exclude_verbs, relation="cop", label="copula_direct")

    return {"direct": direct, "passive": passive, "copula_direct": copula_direct}
