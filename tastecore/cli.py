from __future__ import annotations

import argparse
import json
import logging
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .buckets import bucket
from .color import ColorSynthesizer
from .logging_utils import (
    configure_logging,
    debug_enabled,
    get_log_path,
    log_exception,
    uvicorn_log_config,
)
from .mapping import ParameterMapper
from .params import MusicTasteParameters, VisualParameters, parse_taste
from .schema import PITCH_CLASSES, TASTE_FIELDS
from .session import TasteSession
from .settings import ServerSettings

_LOGGER = logging.getLogger("tastecore.cli")
_CONSOLE = Console()


def _print_json(data: Any) -> None:
    _CONSOLE.print_json(json.dumps(data))


def _visual_table(params: VisualParameters) -> Table:
    table = Table(title="Visual parameters")
    table.add_column("field")
    table.add_column("value", justify="right")
    for name, value in params.to_wire().items():
        table.add_row(name, str(value))
    return table


def _taste_from_args(args: argparse.Namespace) -> MusicTasteParameters:
    payload = {
        "instrumentalness": args.instrumentalness,
        "popularity": args.popularity,
        "valence": args.valence,
        "artistDiversity": args.artist_diversity,
        "energy": args.energy,
        "internalCoherence": args.internal_coherence,
        "averageKey": args.key,
    }
    return parse_taste({name: value for name, value in payload.items() if value is not None})


def _render_error(context: str, exc: BaseException) -> None:
    body = (
        f"[bold]{context} failed:[/]\n\n"
        f"[bold red]{type(exc).__name__}[/]: {exc}\n"
        f"[dim]Logs: {get_log_path()}[/]\n\n"
        "[dim]Set TASTECORE_DEBUG=1 for console trace.[/]"
    )
    _CONSOLE.print(Panel(body, border_style="red"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tastecore")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", type=str, default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--store", choices=["memory", "sqlite"], default=None)

    mapping = sub.add_parser("map", help="Map taste parameters onto visual parameters.")
    mapping.add_argument("--instrumentalness", type=int)
    mapping.add_argument("--popularity", type=int)
    mapping.add_argument("--valence", type=int)
    mapping.add_argument("--artist-diversity", type=int)
    mapping.add_argument("--energy", type=int)
    mapping.add_argument("--internal-coherence", type=int)
    mapping.add_argument("--key", type=str)
    mapping.add_argument(
        "--changed",
        choices=list(TASTE_FIELDS),
        default=None,
        help="Apply only this field's mapping (default: all).",
    )
    mapping.add_argument("--seed", type=int, default=None)
    mapping.add_argument("--json", action="store_true", help="Print JSON instead of a table.")

    color = sub.add_parser("color", help="Synthesize an RGB triple.")
    color.add_argument("--valence", type=int, required=True)
    color.add_argument("--key", type=str, default="C", help=f"One of {', '.join(PITCH_CLASSES)}.")
    color.add_argument("--popularity", type=int, required=True)
    color.add_argument("--seed", type=int, default=None)

    sphere = sub.add_parser("bucket", help="Show the sphere bucket for a displacement value.")
    sphere.add_argument("displace", type=float)
    return parser


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    from .server import create_app

    settings = ServerSettings.from_env()
    overrides = {
        name: value
        for name, value in (("host", args.host), ("port", args.port), ("store", args.store))
        if value is not None
    }
    if overrides:
        settings = settings.model_copy(update=overrides)
    _LOGGER.info("Serving on %s:%s with %s store", settings.host, settings.port, settings.store)
    uvicorn.run(
        create_app(settings=settings),
        host=settings.host,
        port=settings.port,
        log_config=uvicorn_log_config(),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    try:
        parser = build_parser()
        args = parser.parse_args(argv)

        if args.command == "serve":
            return _serve(args)

        if args.command == "map":
            session = TasteSession(mapper=ParameterMapper(ColorSynthesizer(seed=args.seed)))
            taste = _taste_from_args(args)
            if args.changed is None:
                params = session.load_taste(taste)
            else:
                session.taste = taste
                params = session.apply(args.changed)
            if args.json:
                _print_json(params.to_wire())
            else:
                _CONSOLE.print(_visual_table(params))
            return 0

        if args.command == "color":
            rgb = ColorSynthesizer(seed=args.seed).synthesize(args.valence, args.key, args.popularity)
            _print_json({"red": rgb.red, "green": rgb.green, "blue": rgb.blue})
            return 0

        if args.command == "bucket":
            result = bucket(args.displace)
            _print_json(
                {"sphereLow": result.low, "sphereMid": result.mid, "sphereHigh": result.high}
            )
            return 0

        parser.print_help()
        return 1
    except Exception as exc:
        _LOGGER.warning("tastecore CLI failed: %s", exc, exc_info=debug_enabled())
        log_exception("tastecore CLI", exc)
        _render_error("tastecore CLI", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
