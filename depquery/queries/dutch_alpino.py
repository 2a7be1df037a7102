"""
Наборы запросов для нидерландских разборов Alpino.
"""
from typing import Dict, Iterable, Optional

from depquery.core.data_structures import QueryNode
from depquery.query.builder import children, fill, not_children, not_parents, parents, tquery

DUTCH_SAY_VERBS = [
    "aan_bieden", "zeggen", "stellen", "roepen", "schrijven", "denken", "vaststellen", "accepteer", "antwoord",
    "beaam", "bedenk", "bedoel", "begrijp", "beken", "beklemtoon", "bekrachtig", "belijd", "beluister", "benadruk",
    "bereken", "bericht", "beschouw", "beschrijf", "besef", "betuig", "bevestig", "bevroed", "beweer", "bewijs",
    "bezweer", "biecht", "breng", "brul", "concludeer", "confirmeer", "constateer", "debiteer", "declareer",
    "demonstreer", "denk", "draag_uit", "email", "erken", "expliceer", "expliciteer", "fantaseer", "formuleer",
    "geef_aan", "geloof", "hoor", "hamer", "herinner", "houd_vol", "kondig_aan", "kwetter", "licht_toe",
    "maak_bekend", "maak_hard", "meld", "merk", "merk_op", "motiveer", "noem", "nuanceer", "observeer",
    "onderschrijf", "onderstreep", "onthul", "ontsluier", "ontval", "ontvouw", "oordeel", "parafraseer",
    "postuleer", "preciseer", "presumeer", "pretendeer", "publiceer", "rapporteer", "realiseer", "redeneer",
    "refereer", "reken", "roep", "roer_aan", "ruik", "schat", "schets", "schilder", "schreeuw", "schrijf",
    "signaleer", "snap", "snater", "specificeer", "spreek_uit", "staaf", "stip_aan", "suggereer", "tater",
    "teken_aan", "toon_aan", "twitter", "verbaas", "verhaal", "verklaar", "verklap", "verkondig", "vermoed",
    "veronderstel", "verraad", "vertel", "vertel_na", "verwacht", "verwittig", "verwonder", "verzeker", "vind",
    "voel", "voel_aan", "waarschuw", "wed", "weet", "wijs_aan", "wind", "zeg", "zet_uiteen", "zie",
]

QUOTE_PUNCTUATION = ["'", '"', ":", "`", "``", "''"]


def alpino_quote_queries(verbs: Optional[Iterable[str]] = DUTCH_SAY_VERBS,
                         exclude_verbs: Optional[Iterable[str]] = None) -> Dict[str, QueryNode]:
    """
    Запросы цитат для Alpino. Порядок важен: более специфичные идут раньше.
    """
    verbs = list(verbs) if verbs is not None else None
    exclude_verbs = list(exclude_verbs) if exclude_verbs is not None else None

    # x zegt dat y; "kun/moet/zal je zeggen dat ..." исключается
    zegtdat = tquery(children(fill(), save="source", relation="su"),
                     children(children(fill(), save="quote", relation="body"),
                              relation="vc", POS=["C", "comp"]),
                     not_parents(lemma=["kun", "moet", "zal"]),
                     save="verb", lemma=verbs, lemma__N=exclude_verbs)

    # x stelt: y
    ystelt = tquery(children(fill(), save="source", relation="su"),
                    children(fill(), save="quote", relation="nucl"),
                    children(lemma=QUOTE_PUNCTUATION),
                    save="verb", lemma=verbs, lemma__N=exclude_verbs)

    # y, stelt x
    xstelt = tquery(fill(relation__N="tag"),
                    children(fill(),
                             children(fill(), save="source", relation="su"),
                             save="verb", relation="tag", lemma=verbs, lemma__N=exclude_verbs),
                    save="quote")

    # y, volgens x
    volgens = tquery(fill(),
                     children(fill(),
                              children(fill(), save="source"),
                              save="verb", relation=["mod", "tag"], lemma=["volgens", "aldus"]),
                     save="quote")

    # y, zo noemt x het
    noemt = tquery(fill(),
                   children(fill(), save="source", relation="su"),
                   parents(fill(),
                           children(relation="--", lemma=QUOTE_PUNCTUATION),
                           save="quote"),
                   save="verb", relation="tag")

    # x is het er ook mee eens: y
    impliciet = tquery(children(lemma=['"', "'"]),
                       children(fill(), save="quote", relation=["tag", "nucl", "sat"]),
                       children(fill(), save="source", relation="su"),
                       save="verb")

    # x: y
    impliciet2 = tquery(fill(),
                        children(lemma=":"),
                        children(fill(), save="quote", relation=["tag", "nucl", "sat"]),
                        not_children(relation="su"),
                        save="source")

    # moet/kan/zal zeggen - только в первом лице
    moetzeggen = tquery(children(children(save="source", lemma=["ik", "wij"], relation="su"),
                                 children(children(fill(), save="quote", relation="body"),
                                          relation="vc", POS=["C", "comp"]),
                                 lemma=verbs),
                        save="verb", lemma=["kunnen", "moeten", "zullen"])

    return {"zegtdat": zegtdat, "ystelt": ystelt, "xstelt": xstelt, "volgens": volgens, "noemt": noemt,
            "impliciet": impliciet, "impliciet2": impliciet2, "moetzeggen": moetzeggen}


def alpino_clause_queries(verbs: Optional[Iterable[str]] = None,
                          exclude_verbs: Optional[Iterable[str]] = DUTCH_SAY_VERBS) -> Dict[str, QueryNode]:
    """Запросы клауз subject - predicate для Alpino."""
    verbs = list(verbs) if verbs is not None else None
    exclude_verbs = list(exclude_verbs) if exclude_verbs is not None else None

    passive = tquery(fill(),
                     parents(lemma=["zijn", "worden", "hebben"]),
                     children(children(fill(), save="subject", relation="obj1"),
                              lemma=["door", "vanwege", "omwille"]),
                     POS="verb", lemma=verbs, lemma__N=exclude_verbs, save="predicate")

    # [subject] [has/is/etc.] [verb] [object]
    perfect = tquery(parents(fill(), save="predicate", lemma=["zijn", "worden", "hebben"]),
                     children(fill(), save="subject", relation="su"),
                     POS="verb", lemma=verbs, lemma__N=exclude_verbs)

    # [subject] [verb] [object]
    active = tquery(fill(),
                    children(fill(), save="subject", relation="su"),
                    save="predicate", POS="verb", relation__N="vc", lemma=verbs, lemma__N=exclude_verbs)

    # [subject] [verb]
    catch_rest = tquery(fill(),
                        children(fill(), save="subject", relation="su"),
                        save="predicate", POS="verb", lemma=verbs, lemma__N=exclude_verbs)

    return {"passive": passive, "perfect": perfect, "active": active, "catch_rest": catch_rest}
