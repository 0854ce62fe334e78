"""Command-line interface for the QC engine."""

import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional

__all__ = ["main", "parse_args", "load_upload", "run_analyze", "list_categories", "run_classify"]

from productqc.classifier import WeightedKeywordClassifier
from productqc.logging_config import setup_logging
from productqc.pipeline import AnalysisRequest, InvalidRequestError, UploadedFile, run_qc_analysis
from productqc.taxonomy import load_taxonomy


def load_upload(path: str) -> UploadedFile:
    """Read a local file as an upload, guessing its MIME type from the extension."""
    file_path = Path(path)
    mime_type, _ = mimetypes.guess_type(file_path.name)
    return UploadedFile(
        filename=file_path.name,
        mime_type=mime_type or "application/octet-stream",
        content=file_path.read_bytes(),
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Product data QC: merge product page, vendor files and search results into a QC report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a product page against a vendor catalogue
  python -m productqc.cli analyze --url https://shop.example/steel-bottle --vendor Milton --file catalogue.pdf

  # Screenshot of an admin panel instead of a URL
  python -m productqc.cli analyze --vendor Milton --screenshot panel.png

  # Search snippets only, report written to a file
  python -m productqc.cli analyze --url https://shop.example/steel-bottle --vendor Milton --search-only --output report.json

  # List categories / classify a title
  python -m productqc.cli categories
  python -m productqc.cli classify --title "Stainless Steel Water Bottle 1L"
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Run a full QC analysis")
    analyze.add_argument("--url", default="", help="Product page URL")
    analyze.add_argument("--vendor", required=True, help="Vendor name")
    analyze.add_argument("--product-name", default="", help="Product name (default: from page title or URL)")
    analyze.add_argument("--file", action="append", default=[], metavar="PATH", help="Vendor PDF/Excel/CSV file (repeatable)")
    analyze.add_argument("--screenshot", metavar="PATH", help="Screenshot to analyze instead of the product URL")
    analyze.add_argument("--search-only", action="store_true", help="Skip the page scrape, use search snippets")
    analyze.add_argument("--output", metavar="PATH", help="Write the analysis JSON here instead of stdout")

    subparsers.add_parser("categories", help="List the category taxonomy")

    classify = subparsers.add_parser("classify", help="Classify a product by title/description")
    classify.add_argument("--title", required=True)
    classify.add_argument("--description", default="")
    classify.add_argument("--raw-text", default="", help="Page text (lightly weighted)")

    return parser.parse_args(argv)


def run_analyze(args: argparse.Namespace) -> int:
    request = AnalysisRequest(
        vendor_name=args.vendor,
        product_url=args.url,
        files=[load_upload(p) for p in args.file],
        screenshot=load_upload(args.screenshot) if args.screenshot else None,
        search_only=args.search_only,
        product_name=args.product_name,
    )
    try:
        request.validate()
    except InvalidRequestError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    result = run_qc_analysis(request)
    output = json.dumps(result, indent=2, ensure_ascii=False, default=str)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Report written to {args.output}")
    else:
        print(output)

    if result.get("warning"):
        print(f"Warning: {result['warning']}", file=sys.stderr)
    return 0


def list_categories() -> int:
    print("Available categories:")
    for category in load_taxonomy():
        print(f"  {category.key}: {category.display_name}")
        print(f"    critical: {', '.join(category.critical_attributes)}")
        print(f"    recommended: {', '.join(category.recommended_attributes)}")
    return 0


def run_classify(args: argparse.Namespace) -> int:
    classifier = WeightedKeywordClassifier()
    category = classifier.classify(args.title, args.description, args.raw_text)
    scores = {k: v for k, v in classifier.scores(args.title, args.description, args.raw_text).items() if v}
    print(f"Scores: {scores}")
    print(f"Category: {category.key + ' (' + category.display_name + ')' if category else 'none'}")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for CLI."""
    args = parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.command == "categories":
        sys.exit(list_categories())
    if args.command == "classify":
        sys.exit(run_classify(args))
    sys.exit(run_analyze(args))


if __name__ == "__main__":
    main()
