"""
PaperGraph Command Line Interface - Extract and inspect document graphs.

Usage:
    papergraph extract <paper.txt> --title "..." --output graph.json
    papergraph extract <paper.txt> --metadata meta.json --thesis-title "..." --existing papers.json
    papergraph providers
    papergraph summarize <graph.json>
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

import papergraph
from papergraph.config import ExtractorConfig
from papergraph.core.constants import PAPER_TYPES
from papergraph.core.extractor import ExtractionOptions, PaperGraphExtractor
from papergraph.core.types import (
    ExistingPaperInput,
    ExtractionGraph,
    ExtractionProgress,
    ExtractionResult,
    PaperInput,
    ThesisInput,
)
from papergraph.exceptions import PaperGraphError
from papergraph.extraction import parse_classification_response
from papergraph.prompts import recommended_action, relevance_label, role_description
from papergraph.providers import get_provider_class, list_providers
from papergraph.utils import TokenCounter


console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Route library logs through rich; DEBUG with --verbose, warnings otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=verbose, show_path=False)],
        force=True,
    )


def load_json_file(path: str, what: str):
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise click.ClickException(f"Failed to read {what} from {path}: {e}")


def build_paper(
    text_file: str,
    metadata_path: Optional[str],
    title: Optional[str],
    authors: Optional[str],
    year: Optional[int],
    venue: Optional[str],
    abstract: Optional[str],
) -> PaperInput:
    """
    Assemble the PaperInput from the text file, an optional metadata JSON
    and explicit options (which win over the metadata file).
    """
    text = Path(text_file).read_text(encoding="utf-8")
    metadata = load_json_file(metadata_path, "metadata") if metadata_path else {}
    if not isinstance(metadata, dict):
        raise click.ClickException("Metadata file must contain a JSON object")

    if authors is not None:
        metadata["authors"] = [a.strip() for a in authors.split(",") if a.strip()]
    if title is not None:
        metadata["title"] = title
    if year is not None:
        metadata["year"] = year
    if venue is not None:
        metadata["venue"] = venue
    if abstract is not None:
        metadata["abstract"] = abstract
    if "journal" in metadata and "venue" not in metadata:
        metadata["venue"] = metadata.pop("journal")

    metadata.setdefault("id", Path(text_file).stem)
    metadata.setdefault("title", Path(text_file).stem)
    metadata["text"] = text

    try:
        return PaperInput.model_validate(metadata)
    except ValidationError as e:
        raise click.ClickException(f"Invalid paper metadata: {e}")


def load_existing_papers(path: Optional[str]) -> List[ExistingPaperInput]:
    if not path:
        return []
    data = load_json_file(path, "existing papers")
    if not isinstance(data, list):
        raise click.ClickException("Existing papers file must contain a JSON list")
    try:
        return [ExistingPaperInput.model_validate(item) for item in data]
    except ValidationError as e:
        raise click.ClickException(f"Invalid existing paper entry: {e}")


def print_summary(graph: ExtractionGraph) -> None:
    """Render a graph overview with rich."""
    console.print(
        f"\n[bold]{graph.paper_id}[/bold]  type: [cyan]{graph.paper_type}[/cyan]  "
        f"depth: {graph.extraction_depth}  status: {graph.extraction_status}"
    )

    table = Table(title=f"Findings ({len(graph.findings)})")
    table.add_column("#", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Title")
    table.add_column("Quotes", justify="right")
    table.add_column("Conf.", justify="right")
    table.add_column("Thesis", justify="right")
    for finding in graph.findings:
        relevance = finding.thesis_relevance
        table.add_row(
            str(finding.order),
            finding.finding_type,
            finding.title,
            str(len(finding.direct_quotes)),
            f"{finding.confidence:.2f}",
            str(relevance.score) if relevance else "-",
        )
    console.print(table)

    console.print(
        f"Connections: {len(graph.intra_document_connections)}  "
        f"Tables: {len(graph.data_tables)}  "
        f"Cross-document hints: {len(graph.potential_connections)}"
    )

    if graph.review_extraction is not None:
        review = graph.review_extraction
        console.print(
            f"Review: {len(review.synthesis_themes)} themes, "
            f"{len(review.identified_gaps)} gaps, "
            f"{len(review.future_directions)} future directions"
        )

    thesis = graph.thesis_relevance
    if thesis is not None:
        label = relevance_label(thesis.overall_score)
        action = recommended_action(thesis.overall_score, thesis.role_confidence)
        console.print(
            f"\nThesis relevance: [{label.color}]{thesis.overall_score} ({label.label})[/] "
            f"- {label.description}"
        )
        console.print(f"Role: [bold]{thesis.suggested_role}[/bold] - {role_description(thesis.suggested_role)}")
        console.print(f"Recommended action: [bold]{action}[/bold]")
        if thesis.thesis_framed_takeaway:
            console.print(f"Takeaway: {thesis.thesis_framed_takeaway}")


@click.group()
@click.version_option(version=papergraph.__version__, prog_name="papergraph")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, verbose):
    """PaperGraph - knowledge graph extraction from academic documents."""
    load_dotenv()
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("text_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--metadata", "metadata_path", type=click.Path(exists=True, dir_okay=False),
              help="JSON file with id, title, authors, year, venue, abstract")
@click.option("--title", default=None, help="Document title")
@click.option("--authors", default=None, help="Comma-separated author names")
@click.option("--year", type=int, default=None, help="Publication year")
@click.option("--venue", default=None, help="Journal or conference")
@click.option("--abstract", default=None, help="Abstract text")
@click.option("--thesis-title", default=None, help="Research thesis (enables thesis integration)")
@click.option("--thesis-description", default="", help="Longer thesis description")
@click.option("--existing", "existing_path", type=click.Path(exists=True, dir_okay=False),
              help="JSON list of documents already in the collection")
@click.option("--paper-type", type=click.Choice(PAPER_TYPES), default=None,
              help="Skip classification and use this paper type")
@click.option("--skip-thesis", is_flag=True, help="Skip thesis integration")
@click.option("--provider", "-p", default=None, help="Provider (openai, openrouter, anthropic, mock)")
@click.option("--model", "-m", default=None, help="Model identifier")
@click.option("--base-url", default=None, help="OpenAI-compatible endpoint")
@click.option("--output", "-o", default=None, help="Output file path (default: stdout)")
@click.pass_context
def extract(ctx, text_file, metadata_path, title, authors, year, venue, abstract,
            thesis_title, thesis_description, existing_path, paper_type, skip_thesis,
            provider, model, base_url, output):
    """
    Extract a knowledge graph from a document's text.

    Examples:
        papergraph extract paper.txt --title "CRISPR screens" -o graph.json
        papergraph extract paper.txt --metadata meta.json --thesis-title "..." --existing papers.json
        papergraph extract paper.txt --provider mock --paper-type review
    """
    paper = build_paper(text_file, metadata_path, title, authors, year, venue, abstract)
    existing = load_existing_papers(existing_path)
    thesis = None
    if thesis_title:
        thesis = ThesisInput(id="thesis", title=thesis_title, description=thesis_description)

    try:
        config = ExtractorConfig.from_env(provider=provider, model=model, base_url=base_url)
        extractor = PaperGraphExtractor(config)
    except PaperGraphError as e:
        raise click.ClickException(str(e))

    options = ExtractionOptions(skip_thesis_integration=skip_thesis)
    if paper_type:
        options.skip_classification = True
        options.provided_classification = parse_classification_response({"paperType": paper_type})

    console.print(f"Extracting from: {text_file} ({extractor.provider.name}, {extractor.provider.model})")

    with Progress(SpinnerColumn(), TextColumn("{task.description}"), console=console, transient=True) as progress:
        task = progress.add_task("Starting...", total=None)

        def on_progress(update: ExtractionProgress) -> None:
            progress.update(task, description=f"[{update.overall_progress}%] {update.stage_description}")

        options.on_progress = on_progress
        result: ExtractionResult = asyncio.run(
            extractor.extract(paper, thesis, existing, options)
        )

    counter = TokenCounter()
    counter.record_extraction(paper.id, extractor.provider.model, result.tokens_used)

    if not result.success:
        console.print(f"[dim]{counter.summary()}[/dim]")
        raise click.ClickException(f"Extraction failed: {result.error}")

    graph_json = json.dumps(result.graph.model_dump(by_alias=True), indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(graph_json, encoding="utf-8")
        console.print(f"Saved to: {output}")
    else:
        click.echo(graph_json)

    print_summary(result.graph)
    console.print(f"[dim]{counter.summary()}[/dim]")


@cli.command("providers")
def providers_cmd():
    """List registered model providers."""
    table = Table(title="Providers")
    table.add_column("Name", style="cyan")
    table.add_column("Default model")
    table.add_column("API key variable")
    for name in list_providers():
        provider_class = get_provider_class(name)
        table.add_row(name, provider_class.DEFAULT_MODEL, provider_class.ENV_VAR or "-")
    Console().print(table)


@cli.command()
@click.argument("graph_file", type=click.Path(exists=True, dir_okay=False))
def summarize(graph_file):
    """Print an overview of a saved graph JSON file."""
    data = load_json_file(graph_file, "graph")
    try:
        graph = ExtractionGraph.model_validate(data)
    except ValidationError as e:
        raise click.ClickException(f"Not a valid graph file: {e}")
    print_summary(graph)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
