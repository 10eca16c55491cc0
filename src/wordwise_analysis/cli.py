from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

import typer
import yaml

from .config import AnalysisConfig, load_config
from .models import AnalysisResult
from .positions import project_highlights
from .session import build_orchestrator
from .styles import WRITING_STYLES

app = typer.Typer(help="Wordwise analysis developer CLI.", no_args_is_help=True)


@app.command()
def analyze(
    input_path: Path = typer.Option(
        ..., exists=True, readable=True, dir_okay=False, file_okay=True
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
    style: str | None = typer.Option(
        None,
        "--style",
        "-s",
        help=f"Writing style ({', '.join(WRITING_STYLES)}).",
    ),
    remote: bool | None = typer.Option(
        None,
        "--remote/--no-remote",
        help="Override config remote.enabled flag.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log to stderr."),
) -> None:
    """Analyze a plain-text file and print findings, highlights and scores as JSON."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )
    cfg = load_config(config)
    if style:
        cfg.writing_style = style
    if remote is not None:
        cfg.remote.enabled = remote

    try:
        orchestrator = build_orchestrator(cfg)
    except (ValueError, RuntimeError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    text = input_path.read_text(encoding="utf-8")
    result = asyncio.run(orchestrator.analyze(text))
    typer.echo(json.dumps(_result_payload(text, result, cfg), indent=2))


@app.command("print-config")
def print_config() -> None:
    """Print the default configuration as YAML."""
    cfg = AnalysisConfig()
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False))


def main() -> None:
    app()


def _result_payload(
    text: str, result: AnalysisResult, cfg: AnalysisConfig
) -> Dict[str, Any]:
    highlights = project_highlights(text, result.findings, cfg.min_display_confidence)
    return {
        "status": result.status.value,
        "scores": result.scores.as_dict(),
        "metadata": asdict(result.metadata),
        "findings": [
            {
                "id": f.id,
                "kind": f.kind,
                "severity": f.severity,
                "category": f.category,
                "start": f.span.start,
                "end": f.span.end,
                "original_text": f.original_text,
                "suggested_text": f.suggested_text,
                "message": f.message,
                "confidence": f.confidence,
                "source": f.source,
            }
            for f in result.findings
        ],
        "highlights": [asdict(h) for h in highlights],
    }


if __name__ == "__main__":
    main()
