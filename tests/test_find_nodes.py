import math
import unittest

import pandas as pd
from pandas.testing import assert_frame_equal

from depquery.core.data_structures import GlobalId
from depquery.core.exceptions import DuplicateTokenError, MissingColumnsError
from depquery.engine import TokenIndex, find_nodes
from depquery.query import children, fill, not_children, not_parents, parents, tquery

from token_samples import make_tokens


def bindings(result, role):
    """token_id всех прямых (уровень 0) привязок роли."""
    nodes = result.nodes
    rows = nodes[(nodes[".ROLE"] == role) & (nodes[".FILL_LEVEL"] == 0)]
    return list(zip(rows["sentence"], rows["token_id"]))


class TestFindNodes(unittest.TestCase):
    def setUp(self):
        self.tokens = make_tokens()
        self.index = TokenIndex(self.tokens)
        self.verbs_with_subject = tquery(children(relation="nsubj", save="subject"),
                                         POS="VB*", save="verb")

    def test_minimal_match(self):
        tokens = pd.DataFrame({
            "doc_id": ["d1", "d1", "d1"],
            "sentence": [1, 1, 1],
            "token_id": [1, 2, 3],
            "token": ["says", "John", "dat"],
            "parent": [0, 1, 1],
            "relation": ["root", "su", "vc"],
        })
        q = tquery(children(relation="su", save="source"), token="says", save="verb")
        result = find_nodes(tokens, q)

        self.assertEqual(result.match_ids, ("d1.1.1",))
        self.assertEqual(len(result.nodes), 2)
        self.assertEqual(result.roles, ("verb", "source"))
        self.assertEqual(bindings(result, "verb"), [(1, 1)])
        self.assertEqual(bindings(result, "source"), [(1, 2)])
        self.assertEqual(set(result.nodes[".ID"]), {"d1.1.1"})

    def test_all_matches_in_order(self):
        result = find_nodes(self.index, self.verbs_with_subject)
        self.assertEqual(result.match_ids, ("d1.1.2", "d1.1.5", "d1.2.2", "d1.3.2"))
        self.assertEqual(bindings(result, "subject"), [(1, 1), (1, 4), (2, 1), (3, 1)])

    def test_named_match_ids(self):
        result = find_nodes(self.index, self.verbs_with_subject, name="clauses")
        self.assertEqual(result.match_ids[0], "clauses#d1.1.2")

    def test_no_match_is_empty_not_error(self):
        result = find_nodes(self.index, tquery(lemma="nonexistent", save="x"))
        self.assertTrue(result.empty)
        self.assertEqual(len(result.nodes), 0)
        self.assertEqual(result.roles, ("x",))
        self.assertIn(".FILL_LEVEL", result.nodes.columns)

    def test_required_vs_optional(self):
        required = tquery(children(relation="dobj", save="object"), POS="VB*", save="verb")
        optional = tquery(children(relation="dobj", save="object", req=False), POS="VB*", save="verb")

        req_ids = find_nodes(self.index, required).match_ids
        opt_ids = find_nodes(self.index, optional).match_ids

        self.assertEqual(req_ids, ("d1.2.2",))
        self.assertEqual(len(opt_ids), 4)
        self.assertTrue(set(req_ids) <= set(opt_ids))

    def test_negation_is_complement(self):
        base = find_nodes(self.index, tquery(POS="VB*", save="verb")).match_ids
        with_obj = find_nodes(self.index, tquery(children(relation="dobj"), POS="VB*", save="verb")).match_ids
        without_obj = find_nodes(self.index, tquery(not_children(relation="dobj"), POS="VB*", save="verb")).match_ids

        self.assertEqual(set(with_obj) & set(without_obj), set())
        self.assertEqual(set(with_obj) | set(without_obj), set(base))
        self.assertEqual(without_obj, ("d1.1.2", "d1.1.5", "d1.3.2"))

    def test_negation_complement_nested(self):
        # Несохраняемый parents() внутри children() может указывать на уже связанный корень
        base = find_nodes(self.index, tquery(children(relation="nsubj"), POS="VB*", save="verb")).match_ids
        pos = find_nodes(self.index, tquery(children(parents(lemma="say"), relation="nsubj"),
                                            POS="VB*", save="verb")).match_ids
        inner_neg = find_nodes(self.index, tquery(children(not_parents(lemma="say"), relation="nsubj"),
                                                  POS="VB*", save="verb")).match_ids
        outer_neg = find_nodes(self.index, tquery(not_children(parents(lemma="say"), relation="nsubj"),
                                                  POS="VB*", save="verb")).match_ids

        self.assertEqual(pos, ("d1.1.2",))
        for neg in (inner_neg, outer_neg):
            self.assertEqual(set(pos) & set(neg), set())
            self.assertEqual(set(pos) | set(neg), set(base))

    def test_unsaved_node_may_revisit_saved_token(self):
        q = tquery(children(parents(save="head"), relation="nsubj", save="subject"), lemma="say", save="verb")
        # head совпал бы с verb - сохраняемые слоты уникальны
        self.assertTrue(find_nodes(self.index, q).empty)

        q = tquery(children(parents(lemma="say"), relation="nsubj", save="subject"), lemma="say", save="verb")
        self.assertEqual(bindings(find_nodes(self.index, q), "subject"), [(1, 1)])

    def test_block_as_frame(self):
        blocked = pd.DataFrame({"token_id": [2], "doc_id": ["d1"], "sentence": [1]})
        result = find_nodes(self.index, self.verbs_with_subject, block=blocked)
        self.assertEqual(result.match_ids, ("d1.1.5", "d1.2.2", "d1.3.2"))

    def test_depth(self):
        shallow = tquery(children(lemma="mary", save="x"), lemma="say", save="v")
        deep = tquery(children(lemma="mary", depth=2, save="x"), lemma="say", save="v")

        self.assertTrue(find_nodes(self.index, shallow).empty)
        result = find_nodes(self.index, deep)
        self.assertEqual(bindings(result, "x"), [(1, 4)])

    def test_connected(self):
        # Mary - внук says, но промежуточный left не проходит фильтр
        loose = tquery(children(lemma="mary", depth=2, save="x"), lemma="say")
        strict = tquery(children(lemma="mary", depth=2, connected=True, save="x"), lemma="say")
        self.assertFalse(find_nodes(self.index, loose).empty)
        self.assertTrue(find_nodes(self.index, strict).empty)

        # Узел без фильтра всегда связный
        open_hop = tquery(children(depth=2, connected=True, save="x"), lemma="say")
        self.assertFalse(find_nodes(self.index, open_hop).empty)

    def test_parents(self):
        q = tquery(parents(lemma="say", save="head"), relation="ccomp", save="clause")
        result = find_nodes(self.index, q)
        self.assertEqual(result.match_ids, ("d1.1.5",))
        self.assertEqual(bindings(result, "head"), [(1, 2)])

        q = tquery(parents(relation="root", depth=math.inf, save="top"), lemma="mary", save="m")
        self.assertEqual(bindings(find_nodes(self.index, q), "top"), [(1, 2)])

    def test_token_fills_one_slot(self):
        # Первый кандидат для a - John, но он нужен b: перебор с возвратом
        q = tquery(children(save="a"), children(relation="nsubj", save="b"), lemma="say")
        result = find_nodes(self.index, q)
        self.assertEqual(bindings(result, "a"), [(1, 5)])
        self.assertEqual(bindings(result, "b"), [(1, 1)])

    def test_fill_levels_and_saved_boundaries(self):
        q = tquery(fill(),
                   children(fill(), relation="ccomp", save="quote"),
                   children(relation="nsubj", save="source"),
                   lemma="say", save="verb")
        nodes = find_nodes(self.index, q).nodes
        rows = {(t, role, level) for t, role, level in
                zip(nodes["token_id"], nodes[".ROLE"], nodes[".FILL_LEVEL"])}

        self.assertEqual(rows, {
            (2, "verb", 0), (5, "quote", 0), (1, "source", 0),
            (6, "verb", 1),
            (3, "quote", 1), (4, "quote", 1),
        })

    def test_fill_depth(self):
        q = tquery(fill(depth=1), lemma="say", save="verb")
        nodes = find_nodes(self.index, q).nodes
        self.assertEqual(sorted(nodes["token_id"]), [1, 2, 5, 6])
        self.assertEqual(nodes[".FILL_LEVEL"].max(), 1)

    def test_block(self):
        blocked = {GlobalId("d1", 1, 2)}
        result = find_nodes(self.index, self.verbs_with_subject, block=blocked)
        self.assertEqual(result.match_ids, ("d1.1.5", "d1.2.2", "d1.3.2"))

        # Заблокированный потомок не находится
        q = tquery(children(relation="nsubj", save="s"), lemma="say")
        self.assertTrue(find_nodes(self.index, q, block={("d1", 1, 1)}).empty)

    def test_g_id_restricts_candidates(self):
        q = tquery(g_id=[("d1", 2, 2)], POS="VB*", save="verb")
        self.assertEqual(find_nodes(self.index, q).match_ids, ("d1.2.2",))

    def test_cycle_rejects_candidate_only(self):
        tokens = make_tokens([
            (1, 1, "a", "a", "NN", 2, "dep"),
            (1, 2, "b", "b", "NN", 1, "dep"),
            (2, 1, "c", "c", "NN", 2, "nsubj"),
            (2, 2, "d", "d", "VB", 0, "root"),
        ])
        q = tquery(parents(relation="root", depth=math.inf, save="top"), save="x")
        with self.assertLogs("depquery.engine.matcher", level="WARNING"):
            result = find_nodes(tokens, q)
        self.assertEqual(result.match_ids, ("d1.2.1",))

    def test_deterministic(self):
        q = tquery(fill(), children(fill(), relation="nsubj", save="subject"), POS="VB*", save="verb")
        first = find_nodes(self.tokens, q)
        second = find_nodes(self.tokens.sample(frac=1, random_state=7), q)
        assert_frame_equal(first.nodes, second.nodes)
        self.assertEqual(first.match_ids, second.match_ids)

    def test_missing_lookup_column(self):
        with self.assertRaises(MissingColumnsError):
            find_nodes(self.index, tquery(pos_tag="NN"))


class TestTokenIndex(unittest.TestCase):
    def test_missing_columns(self):
        with self.assertRaises(MissingColumnsError) as ctx:
            TokenIndex(make_tokens().drop(columns=["relation"]))
        self.assertEqual(ctx.exception.columns, ["relation"])

    def test_duplicates(self):
        tokens = make_tokens()
        with self.assertRaises(DuplicateTokenError):
            TokenIndex(pd.concat([tokens, tokens.head(2)]))

    def test_navigation(self):
        index = TokenIndex(make_tokens())
        says = GlobalId("d1", 1, 2)
        self.assertEqual(index.children_of(says), [("d1", 1, 1), ("d1", 1, 5), ("d1", 1, 6)])
        self.assertIsNone(index.parent_of(says))
        self.assertEqual(index.parent_of(GlobalId("d1", 1, 4)), ("d1", 1, 5))

    def test_dangling_parent_is_root(self):
        tokens = make_tokens([(1, 1, "a", "a", "NN", 9, "dep"), (1, 2, "b", "b", "NN", 0, "root")])
        with self.assertLogs("depquery.engine.token_index", level="WARNING"):
            index = TokenIndex(tokens)
        self.assertIsNone(index.parent_of(GlobalId("d1", 1, 1)))


if __name__ == '__main__':
    unittest.main()
