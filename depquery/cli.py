#!/usr/bin/env python3
"""
Разметка CoNLL-U файла набором запросов.

    python -m depquery.cli data/news.conllu --queries english_quotes --column quote
    python -m depquery.cli data/news.conllu --queries my_queries.yaml --column clause --output out.csv
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
from rich.console import Console
from rich.table import Table

from depquery.annotation.annotator import annotate
from depquery.config import load_config
from depquery.core.data_structures import QueryNode
from depquery.core.exceptions import DepQueryError
from depquery.ingestion.loader import ConlluTokenLoader
from depquery.ingestion.validators import TokenFrameValidator
from depquery.queries import QUERY_SET_POS_FIELDS, QUERY_SETS
from depquery.query.serialization import load_queries

logger = logging.getLogger(__name__)
console = Console()


def resolve_queries(spec: str) -> Dict[str, QueryNode]:
    """Имя встроенного набора (english_quotes, ...) или путь к YAML."""
    if spec in QUERY_SETS:
        return QUERY_SETS[spec]()
    path = Path(spec)
    if not path.exists():
        raise FileNotFoundError(f"Unknown query set or file: {spec} (built-in: {', '.join(QUERY_SETS)})")
    return load_queries(path)


def print_annotations(tokens: pd.DataFrame, column: str, limit: int = 50):
    id_column = f"{column}_id"
    hits = tokens[tokens[column].notna()]

    columns = [c for c in ("doc_id", "sentence", "token_id", "token", column, id_column) if c in hits.columns]

    table = Table(title=f"Annotations in '{column}' ({len(hits)} tokens)")
    for col in columns:
        table.add_column(col, style="green" if col == column else "cyan")

    for _, row in hits.head(limit).iterrows():
        table.add_row(*[str(row[col]) for col in columns])

    console.print(table)
    if len(hits) > limit:
        console.print(f"... {len(hits) - limit} more rows")


def resolve_pos_field(args: argparse.Namespace, cfg: Dict) -> str:
    """--pos-field, затем колонка, которую ожидает встроенный набор, затем конфиг."""
    return args.pos_field or QUERY_SET_POS_FIELDS.get(args.queries) or cfg["columns"]["pos_field"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Annotate dependency trees with tree queries")
    parser.add_argument("input", type=Path, help="CoNLL-U file")
    parser.add_argument("--queries", required=True,
                        help=f"Built-in query set ({', '.join(QUERY_SETS)}) or YAML file")
    parser.add_argument("--column", required=True, help="Annotation column name")
    parser.add_argument("--config", type=Path, default=None, help="YAML config (defaults to config/depquery.yaml)")
    parser.add_argument("--pos-field", choices=["upos", "xpos"], default=None,
                        help="CoNLL-U column copied to POS (defaults to the query set's or the config's)")
    parser.add_argument("--no-chain", action="store_true", help="Run queries independently")
    parser.add_argument("--unique-fill", action="store_true", help="Keep only the nearest fill")
    parser.add_argument("--no-concat", action="store_true", help="Duplicate rows instead of concatenating")
    parser.add_argument("--show-fill", action="store_true", help="Add fill level column")
    parser.add_argument("--output", type=Path, default=None, help="Save annotated tokens as CSV")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    cfg = load_config(args.config)
    defaults = cfg["annotate"]

    try:
        pos_field = resolve_pos_field(args, cfg)
        logger.debug(f"Using {pos_field} as POS")
        loader = ConlluTokenLoader(pos_field=pos_field,
                                   strict=cfg["validation_level"] == "strict",
                                   show_progress=args.verbose)
        tokens = loader.load(args.input)
        if tokens.empty:
            console.print(f"❌ [red]No tokens loaded from {args.input}[/red]")
            return 1

        validation = TokenFrameValidator.validate(tokens)
        if not validation.is_valid:
            console.print(f"❌ [red]Invalid token table: {validation.errors}[/red]")
            return 1

        queries = resolve_queries(args.queries)
        annotated = annotate(
            tokens, queries, column=args.column,
            as_chain=defaults["as_chain"] and not args.no_chain,
            unique_fill=defaults["unique_fill"] or args.unique_fill,
            concat_dup=defaults["concat_dup"] and not args.no_concat,
            show_fill=defaults["show_fill"] or args.show_fill,
            verbose=args.verbose,
        )
    except (DepQueryError, FileNotFoundError) as e:
        console.print(f"❌ [red]{e}[/red]")
        return 1

    print_annotations(annotated, args.column)

    if args.output:
        annotated.to_csv(args.output, index=False)
        console.print(f"💾 Saved to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
