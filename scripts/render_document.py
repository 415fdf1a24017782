"""Render a document to PDF from a JSON description, without a server.

Input JSON structure:
    {
        "document": {... Document fields ...},
        "issuer": {... IssuerProfile fields ...} | null,
        "document_number": "F-0001",
        "issue_date": "2024-03-15"        (optional, defaults to today)
    }

Usage:
    python -m scripts.render_document draft.json -o out/
"""

import json
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from services.documents.schema import Document, IssuerProfile
from services.rendering.service import DocumentRenderer, RenderResult
from services.shared.config import get_settings

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


@dataclass
class RenderJob:
    """Parsed render request."""

    document: Document
    issuer: IssuerProfile | None
    document_number: str
    issue_date: date | None = None


def load_render_job(path: Path) -> RenderJob:
    """Load a render request from a JSON file.

    Args:
        path: Path to JSON file

    Returns:
        RenderJob ready for the renderer

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the JSON is malformed or a required key is missing
    """
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if "document" not in data or "document_number" not in data:
        raise ValueError("Input must contain 'document' and 'document_number'")

    issuer_data = data.get("issuer")
    issue_date = data.get("issue_date")

    return RenderJob(
        document=Document.model_validate(data["document"]),
        issuer=IssuerProfile.model_validate(issuer_data) if issuer_data else None,
        document_number=str(data["document_number"]),
        issue_date=date.fromisoformat(issue_date) if issue_date else None,
    )


def resolve_output_path(output: Path | None, result: RenderResult) -> Path:
    """Pick the output path: the suggested name inside a directory, or the given file."""
    if output is None:
        return Path(result.file_name)
    if output.is_dir():
        return output / result.file_name
    return output


def render_job(job: RenderJob) -> RenderResult:
    renderer = DocumentRenderer(get_settings())
    return renderer.render(job.document, job.issuer, job.document_number, job.issue_date)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Render an invoice, quote or receipt to PDF")
    parser.add_argument("input", type=Path, help="Path to JSON render request")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output PDF file or directory (defaults to the suggested file name)",
    )

    args = parser.parse_args()

    job = load_render_job(args.input)
    result = render_job(job)
    if result.logo_omitted:
        logger.warning("Issuer logo could not be decoded and was left out")

    output_path = resolve_output_path(args.output, result)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.content)
    logger.info(f"Wrote {result.page_count} page(s) to {output_path}")
