"""Example usage of the PaperGraph extractor.

Usage:
    python example.py <text_file> [thesis]

Examples:
    python example.py sleep_paper.txt
    python example.py sleep_paper.txt "Sleep consolidates declarative memory"

Uses the provider from PAPERGRAPH_PROVIDER / the available API keys;
set PAPERGRAPH_PROVIDER=mock to run offline.
"""

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from papergraph import ExtractionOptions, PaperGraphExtractor, PaperInput, ThesisInput


def print_progress(progress):
    print(f"  [{progress.overall_progress:3d}%] {progress.stage_description}")


async def run(text_path: str, thesis_title: str = None):
    paper = PaperInput(
        id=Path(text_path).stem,
        title=Path(text_path).stem.replace("_", " "),
        text=Path(text_path).read_text(encoding="utf-8"),
    )
    thesis = ThesisInput(id="thesis", title=thesis_title) if thesis_title else None

    extractor = PaperGraphExtractor()
    print(f"Provider: {extractor.provider.name} ({extractor.provider.model})")
    print()

    result = await extractor.extract(paper, thesis, [], ExtractionOptions(on_progress=print_progress))
    print()

    if not result.success:
        print(f"Extraction failed: {result.error}")
        return

    graph = result.graph
    print(f"Paper type: {graph.paper_type} ({graph.extraction_depth} extraction)")
    print(f"Findings: {len(graph.findings)}")
    for finding in graph.findings:
        print(f"  - [{finding.finding_type}] {finding.title}")
    print(f"Connections: {len(graph.intra_document_connections)}")

    if graph.thesis_relevance:
        print(f"Thesis relevance: {graph.thesis_relevance.overall_score}/5 "
              f"as {graph.thesis_relevance.suggested_role}")
    print(f"Tokens: {result.tokens_used.total:,}")


def main():
    load_dotenv()

    if len(sys.argv) < 2:
        print("Usage: python example.py <text_file> [thesis]")
        print("Example: python example.py sleep_paper.txt \"Sleep consolidates declarative memory\"")
        sys.exit(1)

    asyncio.run(run(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None))


if __name__ == "__main__":
    main()
