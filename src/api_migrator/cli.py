"""CLI entry point for api-migrator."""

from pathlib import Path

import click

from api_migrator.config import load_settings
from api_migrator.errors import MigratorError
from api_migrator.logs import configure_logging
from api_migrator.pipeline import MigrationPipeline, load_modules
from api_migrator.transform.cache import content_key
from api_migrator.transform.chunker import chunk_spec


@click.group()
def main():
    """API Migrator: turn a Spring service analysis into a FastAPI generation model."""
    pass


@main.command()
@click.argument("input_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output directory for migration artifacts.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML settings file.")
@click.option("--max-chunk-size", default=None, type=click.IntRange(min=1), help="Maximum endpoints per LLM chunk.")
@click.option("--cache-dir", default=None, type=click.Path(path_type=Path), help="Directory for cached LLM results.")
@click.option("--llm/--no-llm", "use_llm", default=None, help="Use the LLM pipeline or only the deterministic mapper.")
@click.option("--model", default=None, help="LLM model to use.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def migrate(input_path: Path, output: Path, config_path: Path | None, max_chunk_size: int | None,
            cache_dir: Path | None, use_llm: bool | None, model: str | None, verbose: bool):
    """Transform every module analysis under INPUT_PATH into a FastAPI spec."""
    configure_logging(verbose)
    try:
        settings = load_settings(
            config_path,
            input=input_path,
            output=output,
            max_chunk_size=max_chunk_size,
            cache_dir=cache_dir,
            use_llm=use_llm,
            model=model,
        )
        mode = "llm" if settings.use_llm else "deterministic"
        click.echo(f"Migrating {input_path} (mode: {mode}, max chunk size: {settings.max_chunk_size})...")
        results = MigrationPipeline(settings).run()
    except MigratorError as e:
        raise click.ClickException(str(e)) from e

    if not results:
        click.echo("No modules found.")
        return

    for result in results:
        line = f"  {result.module_name}: {len(result.spec.models)} models, {len(result.spec.routes)} routes"
        if result.stats is not None:
            line += f" ({result.stats.summary()})"
        click.echo(line)
    click.echo(f"Done! Artifacts written to {output}")


@main.command()
@click.argument("input_path", type=click.Path(exists=True, path_type=Path))
@click.option("--max-chunk-size", default=10, show_default=True, type=click.IntRange(min=1), help="Maximum endpoints per chunk.")
def chunks(input_path: Path, max_chunk_size: int):
    """Show how each module would be chunked for the LLM."""
    try:
        modules = load_modules(input_path)
    except MigratorError as e:
        raise click.ClickException(str(e)) from e

    for module in modules:
        spec = module.spec
        parts = chunk_spec(spec, max_chunk_size)
        click.echo(f"{spec.module_name}: {len(spec.endpoints)} endpoints -> {len(parts)} chunk(s)")
        for index, part in enumerate(parts, start=1):
            click.echo(
                f"  #{index}: {len(part.endpoints)} endpoints, {len(part.dtos)} DTOs, key {content_key(part)[:12]}"
            )
