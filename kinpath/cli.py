import argparse
import json
import logging
import sys
from pathlib import Path

from .batch import compute_trees
from .codec import get_codec
from .config import load_config
from .cousins import cousin_label
from .errors import KinpathError
from .fs import read_tree_files
from .graph import build_graph
from .storage import Storage


def _load_trees(args: argparse.Namespace, cfg):
    """Trees from the given JSON files, else every (or the selected) tree of the store."""
    if args.files:
        return read_tree_files(args.files)
    store = Storage(args.db_file or cfg.db_file)
    try:
        if args.site is not None and args.tree is not None:
            return [store.load_tree(args.site, args.tree)]
        keys = store.trees()
        if args.site is not None:
            keys = [k for k in keys if k[0] == args.site]
        return store.load_trees(keys)
    finally:
        store.close()


def _run_import(args: argparse.Namespace, cfg) -> int:
    store = Storage(args.db_file or cfg.db_file)
    try:
        for tree in read_tree_files(args.files):
            store.save_tree(tree)
            print(f"Imported tree {tree.key}: {len(tree.individuals)} individuals, {len(tree.families)} families")
    finally:
        store.close()
    return 0


def _run_paths(args: argparse.Namespace, cfg) -> int:
    if args.codec:
        cfg.codec = args.codec
    codec = get_codec(cfg.codec)
    results = compute_trees(_load_trees(args, cfg), cfg)

    out = sys.stdout if args.output == "-" else open(args.output, "w", encoding="utf-8")
    try:
        for res in results:
            for rec in res.records:
                enc = codec.encode(rec)
                if isinstance(enc, str):
                    out.write(f"{res.key}\t{enc}\n")
                else:
                    out.write(json.dumps({"site": res.site, "tree": res.tree, **enc}, ensure_ascii=False) + "\n")
    finally:
        if out is not sys.stdout:
            out.close()

    if args.save:
        store = Storage(args.db_file or cfg.db_file)
        try:
            for res in results:
                if res.ok:
                    n = store.save_result(res)
                    logging.info("saved %d paths for %s:%s", n, res.site, res.tree)
        finally:
            store.close()

    failed = [r for r in results if not r.ok]
    for r in failed:
        print(f"{r.key}: {r.error}", file=sys.stderr)
    return 1 if failed else 0


def _run_check(args: argparse.Namespace, cfg) -> int:
    count = errors = 0
    for tree in _load_trees(args, cfg):
        graph = build_graph(tree.individuals, tree.families)
        if not tree.individuals:
            print(f"{tree.key}: [ERROR] empty_tree: tree has no individuals")
            count += 1
            errors += 1
        for issue in graph.issues:
            print(f"{tree.key}: {issue}")
            count += 1
    if count == 0:
        print("No issues found.")
    return 1 if errors else 0


def _run_describe(args: argparse.Namespace, cfg) -> int:
    label, degree, removed = cousin_label(args.up, args.down)
    if degree is None:
        print(label)
    else:
        print(f"{label} (degree={degree}, removed={removed})")
    return 0


def _run_serve(args: argparse.Namespace, cfg) -> int:
    import uvicorn
    uvicorn.run("kinpath.web.app:app", host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kinpath",
        description="Shortest relationship paths over genealogical trees",
    )
    parser.add_argument("--config", default=None, help="Path to a JSON config file")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")
    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    def _tree_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("files", nargs="*", type=Path, help="JSON tree files (default: read the store)")
        sub.add_argument("--db-file", type=Path, default=None, help="Path to the SQLite store")
        sub.add_argument("--site", default=None, help="Only trees of this site")
        sub.add_argument("--tree", default=None, help="Only this tree (with --site)")

    imp = subparsers.add_parser("import", help="Import JSON tree files into the store")
    imp.add_argument("files", nargs="+", type=Path, help="JSON tree files")
    imp.add_argument("--db-file", type=Path, default=None, help="Path to the SQLite store")
    imp.set_defaults(func=_run_import)

    paths = subparsers.add_parser("paths", help="Compute relationship paths from each tree's root")
    _tree_args(paths)
    paths.add_argument("--codec", choices=["verbose", "compact"], default=None, help="Output encoding")
    paths.add_argument("-o", "--output", default="-", help="Output file path or '-' for stdout")
    paths.add_argument("--save", action="store_true", help="Store the computed paths in the store")
    paths.set_defaults(func=_run_paths)

    check = subparsers.add_parser("check", help="Report data-quality issues")
    _tree_args(check)
    check.set_defaults(func=_run_check)

    desc = subparsers.add_parser("describe", help="Describe a (generations up, generations down) pair")
    desc.add_argument("up", type=int)
    desc.add_argument("down", type=int)
    desc.set_defaults(func=_run_describe)

    serve = subparsers.add_parser("serve", help="Start the web view")
    serve.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8317, help="Port to bind (default: 8317)")
    serve.set_defaults(func=_run_serve)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    try:
        cfg = load_config(args.config)
        return args.func(args, cfg) or 0
    except KinpathError as exc:
        print(f"kinpath: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        print(f"kinpath: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
