"""Command-line interface for mdxform."""

import argparse
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Iterable, List, Optional

from .compile_pipeline import CompileResult, check_rendered, compile_mdx
from .datasources import load_datasources, missing_sources, options_html
from .diagnostics import Diagnostic, MdxStructureError, has_warnings
from .io_utils import load_config, read_source, stable_json_dumps, warn, write_text
from .models import CompilerConfig
from .parser import parse
from .tokenizer import tokenize


def _package_version() -> str:
    try:
        return version("mdxform")
    except PackageNotFoundError:
        return "unknown (not installed)"


def _resolve_config(args: argparse.Namespace) -> CompilerConfig:
    config_path = getattr(args, "config", None)
    config = load_config(Path(config_path)) if config_path else CompilerConfig()
    updates = {}
    if getattr(args, "strict", False):
        updates["strict"] = True
    if getattr(args, "escape", False):
        updates["escape"] = True
    return config.model_copy(update=updates) if updates else config


def _compile(source: str, config: CompilerConfig) -> CompileResult:
    try:
        return compile_mdx(source, config)
    except MdxStructureError as exc:
        raise SystemExit(f"Structural error: {exc}") from exc


def _warn_diagnostics(diagnostics: List[Diagnostic]) -> None:
    for item in diagnostics:
        if item.severity == "warning":
            warn(item.format())


def _handle_render(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    config = _resolve_config(args)

    if args.check:
        if not args.output:
            raise SystemExit("--check requires --out pointing at the stored output.")
        try:
            diff = check_rendered(input_path, Path(args.output), config)
        except MdxStructureError as exc:
            raise SystemExit(f"Structural error: {exc}") from exc
        if diff:
            sys.stderr.write(diff)
            raise SystemExit(1)
        print(f"{args.output} is up to date.")
        return

    result = _compile(read_source(input_path), config)
    _warn_diagnostics(result.diagnostics)
    if args.output:
        write_text(Path(args.output), result.html + "\n")
        print(f"Rendered {input_path} to {args.output}.")
    else:
        sys.stdout.write(result.html + "\n")


def _handle_check(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    config = _resolve_config(args)
    result = _compile(read_source(input_path), config)

    for item in result.diagnostics:
        print(f"{input_path}: {item.format()}")

    if has_warnings(result.diagnostics):
        raise SystemExit(1)
    print(f"No structural problems found in {input_path}.")


def _handle_tokens(args: argparse.Namespace) -> None:
    tokens = tokenize(read_source(Path(args.input)))
    sys.stdout.write(stable_json_dumps([token.to_dict() for token in tokens], sort_keys=False))


def _handle_ast(args: argparse.Namespace) -> None:
    tree = parse(tokenize(read_source(Path(args.input))))
    try:
        payload = stable_json_dumps(tree.to_dict(), sort_keys=False)
    except RecursionError as exc:
        raise SystemExit(
            f"{args.input}: containers are nested too deeply to dump as JSON."
        ) from exc
    sys.stdout.write(payload)


def _handle_datasource(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    registry = load_datasources(args.config)

    if args.verify:
        if not args.input:
            raise SystemExit("--verify requires --in pointing at an MDX source.")
        tree = parse(tokenize(read_source(Path(args.input))))
        missing = missing_sources(tree, registry)
        if missing:
            for source in missing:
                warn(f"{args.input}: datasource '{source}' is not registered in {args.config}")
            raise SystemExit(1)
        print(f"All datasources used by {args.input} are registered.")
        return

    if not args.source:
        raise SystemExit("--source is required unless --verify is given.")
    if args.source not in registry:
        warn(f"Datasource '{args.source}' is not registered; returning no options.")
    escape = args.escape or config.escape
    sys.stdout.write(options_html(args.source, registry, escape=escape) + "\n")


def _add_input_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--in",
        dest="input",
        required=True,
        help="Path to the MDX form source.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdxform",
        description="Compile MDX form directives into htmx-ready HTML.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"mdxform {_package_version()}",
        help="Show the mdxform version and exit.",
    )

    subparsers = parser.add_subparsers(dest="command")

    render_parser = subparsers.add_parser(
        "render",
        help="Render an MDX form to HTML.",
        description="Compile an MDX source file into an HTML fragment.",
    )
    _add_input_argument(render_parser)
    render_parser.add_argument(
        "--out",
        dest="output",
        help="File to write the HTML to (defaults to stdout).",
    )
    render_parser.add_argument("--config", help="Path to mdxform.yaml.")
    render_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on unbalanced or mismatched form/group blocks.",
    )
    render_parser.add_argument(
        "--escape",
        action="store_true",
        help="HTML-escape labels, options and attribute values.",
    )
    render_parser.add_argument(
        "--check",
        action="store_true",
        help="Compare a fresh render with --out and print a diff when it is stale.",
    )
    render_parser.set_defaults(func=_handle_render)

    check_parser = subparsers.add_parser(
        "check",
        help="Report problems in an MDX form.",
        description="Print every diagnostic; exit non-zero when any warning is found.",
    )
    _add_input_argument(check_parser)
    check_parser.add_argument("--config", help="Path to mdxform.yaml.")
    check_parser.add_argument(
        "--strict",
        action="store_true",
        help="Stop at the first structural problem.",
    )
    check_parser.set_defaults(func=_handle_check)

    tokens_parser = subparsers.add_parser(
        "tokens",
        help="Dump the directive tokens as JSON.",
        description="Tokenize an MDX source and print the tokens.",
    )
    _add_input_argument(tokens_parser)
    tokens_parser.set_defaults(func=_handle_tokens)

    ast_parser = subparsers.add_parser(
        "ast",
        help="Dump the parsed form tree as JSON.",
        description="Parse an MDX source and print the nested tree.",
    )
    _add_input_argument(ast_parser)
    ast_parser.set_defaults(func=_handle_ast)

    datasource_parser = subparsers.add_parser(
        "datasource",
        help="Resolve or verify select datasources.",
        description=(
            "Print the options a datasource serves, or check that every dynamic "
            "select in a form has a registered datasource."
        ),
    )
    datasource_parser.add_argument(
        "--config",
        required=True,
        help="Path to mdxform.yaml holding the datasources mapping.",
    )
    datasource_parser.add_argument("--source", help="Datasource key, e.g. /api/products.")
    datasource_parser.add_argument(
        "--in",
        dest="input",
        help="MDX source whose dynamic selects should be verified.",
    )
    datasource_parser.add_argument(
        "--verify",
        action="store_true",
        help="Check that every dynamic select in --in has a registered datasource.",
    )
    datasource_parser.add_argument(
        "--escape",
        action="store_true",
        help="HTML-escape option values.",
    )
    datasource_parser.set_defaults(func=_handle_datasource)

    return parser


def main(argv: Optional[Iterable[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


__all__ = ["build_parser", "load_config", "main"]


if __name__ == "__main__":
    main()
