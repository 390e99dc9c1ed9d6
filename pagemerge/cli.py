"""Command-line entry point: ``pagemerge URL`` prints the merged Markdown."""

import asyncio
from typing import Optional

import typer

from pagemerge.log_config import configure_logging
from pagemerge.services.aggregator import ERROR_PREFIX, extract_content_to_markdown

app = typer.Typer(
    name="pagemerge",
    help="Extract a multi-page article and print it as Markdown.",
    add_completion=False,
)


@app.command()
def main(
    url: str = typer.Argument(..., help="URL of the first page of the article."),
    max_pages: Optional[int] = typer.Option(
        None, "--max-pages", min=1, help="Stop after this many pages."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level for diagnostics on stderr."
    ),
) -> None:
    """Fetch URL, follow its "next page" links, and print the merged Markdown."""
    configure_logging(level=log_level.upper() if log_level else None)

    markdown = asyncio.run(extract_content_to_markdown(url, max_pages=max_pages))
    typer.echo(markdown)
    if markdown.startswith(ERROR_PREFIX):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
