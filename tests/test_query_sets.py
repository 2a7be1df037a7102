import os
import tempfile
import unittest

import pandas as pd

from depquery.annotation import annotate
from depquery.cli import main
from depquery.ingestion import ConlluTokenLoader
from depquery.queries import QUERY_SETS, alpino_quote_queries, corenlp_clause_queries, corenlp_quote_queries

from token_samples import JOHN_SAYS_CONLLU, make_tokens


def cell(frame, column, token_id):
    return frame[frame["token_id"] == token_id][column].iloc[0]


class TestQuerySets(unittest.TestCase):
    def test_all_sets_build(self):
        for name, factory in QUERY_SETS.items():
            queries = factory()
            self.assertTrue(queries, name)
            for query in queries.values():
                self.assertTrue(query.save_names(), f"{name}: {query.label}")

    def test_english_quote(self):
        tokens = ConlluTokenLoader(pos_field="xpos").loads(JOHN_SAYS_CONLLU, doc_id="d1")
        annotated = annotate(tokens, corenlp_quote_queries(), "quote")

        self.assertEqual(cell(annotated, "quote", 1), "source")
        self.assertEqual(cell(annotated, "quote", 2), "verb")
        self.assertEqual(cell(annotated, "quote", 5), "quote")
        self.assertEqual(cell(annotated, "quote", 4), "quote")
        self.assertEqual(cell(annotated, "quote", 6), "verb")
        self.assertEqual(set(annotated["quote_id"]), {"direct#d1.1.2"})

    def test_english_clauses_skip_speech_verbs(self):
        annotated = annotate(make_tokens(), corenlp_clause_queries(with_object=True), "clause")
        rows = annotated[annotated["sentence"] == 2].set_index("token_id")

        self.assertEqual(rows.loc[2, "clause"], "predicate")
        self.assertEqual(rows.loc[1, "clause"], "subject")
        self.assertEqual(rows.loc[4, "clause"], "object")
        self.assertEqual(rows.loc[3, "clause"], "object")
        # says исключен как глагол речи, left - обычная клауза
        s1 = annotated[annotated["sentence"] == 1].set_index("token_id")
        self.assertEqual(s1.loc[5, "clause"], "predicate")
        self.assertTrue(pd.isna(s1.loc[2, "clause"]))

    def test_quote_child_unfiltered(self):
        # Цитата - любой потомок глагола речи, кроме источника
        tokens = make_tokens([
            (1, 1, "John", "john", "NNP", 2, "nsubj"),
            (1, 2, "says", "say", "VBZ", 0, "root"),
            (1, 3, "yes", "yes", "UH", 2, "obj"),
        ])
        annotated = annotate(tokens, corenlp_quote_queries(), "quote")
        self.assertEqual(list(annotated["quote"]), ["source", "verb", "quote"])

    def test_clause_order(self):
        self.assertEqual(list(corenlp_clause_queries()), ["direct", "passive", "copula_direct"])

    def test_copula(self):
        tokens = make_tokens([
            (1, 1, "He", "he", "PRP", 4, "nsubj"),
            (1, 2, "is", "be", "VBZ", 4, "cop"),
            (1, 3, "a", "a", "DT", 4, "det"),
            (1, 4, "fool", "fool", "NN", 0, "root"),
        ])
        annotated = annotate(tokens, corenlp_clause_queries(), "clause")
        self.assertEqual(list(annotated["clause"]), ["subject", "predicate", "predicate", "predicate"])
        self.assertEqual(cell(annotated, "clause_id", 4), "copula_direct#d1.1.2")

    def test_exclude_verbs(self):
        queries = alpino_quote_queries(exclude_verbs=["zeggen"])
        self.assertIn("lemma__N=['zeggen']", queries["zegtdat"].describe())


class TestCli(unittest.TestCase):
    def test_annotate_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            source = os.path.join(tmp, "news.conllu")
            output = os.path.join(tmp, "out.csv")
            with open(source, "w", encoding="utf-8") as f:
                f.write(JOHN_SAYS_CONLLU)

            code = main([source, "--queries", "english_quotes", "--column", "quote", "--output", output])
            self.assertEqual(code, 0)

            result = pd.read_csv(output)
            self.assertEqual(len(result), 6)
            self.assertEqual(result.loc[result["token_id"] == 1, "quote"].iloc[0], "source")

    def test_query_set_pos_field(self):
        with tempfile.TemporaryDirectory() as tmp:
            source = os.path.join(tmp, "news.conllu")
            output = os.path.join(tmp, "out.csv")
            with open(source, "w", encoding="utf-8") as f:
                f.write(JOHN_SAYS_CONLLU)

            # Английские наборы сами берут теги PTB из xpos
            self.assertEqual(main([source, "--queries", "english_clauses", "--column", "clause",
                                   "--output", output]), 0)
            result = pd.read_csv(output)
            self.assertEqual(result.loc[result["token_id"] == 5, "clause"].iloc[0], "predicate")

            # Явный --pos-field важнее: в upos тегов VB* нет
            self.assertEqual(main([source, "--queries", "english_clauses", "--column", "clause",
                                   "--pos-field", "upos", "--output", output]), 0)
            self.assertTrue(pd.read_csv(output)["clause"].isna().all())

    def test_unknown_query_set(self):
        with tempfile.TemporaryDirectory() as tmp:
            source = os.path.join(tmp, "news.conllu")
            with open(source, "w", encoding="utf-8") as f:
                f.write(JOHN_SAYS_CONLLU)
            self.assertEqual(main([source, "--queries", "no_such_set", "--column", "quote"]), 1)


if __name__ == '__main__':
    unittest.main()
