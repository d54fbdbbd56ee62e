"""Command-line interface for receipt total extraction."""

import asyncio
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from tqdm import tqdm

from .config import ScanConfig
from .export import ExcelExporter
from .ocr import IMAGE_SUFFIXES, PDF_SUFFIX, OCRProcessor
from .parsers import (
    ExtractedData,
    extract_amounts_from_text,
    get_no_amount_error_message,
    score_candidates,
)
from .review import ReviewQueue, alternative_amounts, suggested_amounts
from .scanner import ScanSession, scan_receipt_image

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stderr)
    ]
)
logger = logging.getLogger(__name__)


def _load_config(config_path: Optional[Path]) -> ScanConfig:
    return ScanConfig.load(config_path) if config_path else ScanConfig()


def _enable_debug(debug: bool):
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        click.echo("🔍 Debug mode enabled - candidate scoring will be logged", err=True)


def _echo_result(data: ExtractedData, as_json: bool, explain: bool = False):
    """Print an extraction result for a person or as JSON."""
    if as_json:
        payload = data.to_dict()
        payload['message'] = get_no_amount_error_message(data)
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    if data.amount > 0:
        click.echo(f"Total: {data.amount:.2f} (confidence {data.confidence:.0%})")
        choices = alternative_amounts(data)
        title = "Other amounts found:"
    else:
        click.echo(get_no_amount_error_message(data))
        choices = suggested_amounts(data)
        title = "Use this amount:" if len(choices) == 1 else "Amounts found:"

    if choices:
        click.echo(title)
        for amount in choices:
            click.echo(f"  {amount.value:>10.2f}  line {amount.line_index:<3} {amount.context}")

    if explain and data.all_amounts:
        ranked = score_candidates(data.all_amounts, len(data.raw_text.split('\n')))
        click.echo("\nCandidate ranking:")
        for item in ranked:
            signals = ", ".join(f"{name}={weight:+.2f}" for name, weight in item.signals.items())
            click.echo(f"  {item.score:6.2f}  {item.value:>10.2f}  {item.category:<8}  {signals}")


def scan_file(path: Path,
              processor: OCRProcessor,
              config: ScanConfig,
              force_ocr: bool = False) -> Tuple[Optional[ExtractedData], str]:
    """
    Extract the total from one receipt file.

    PDFs with good embedded text skip OCR unless force_ocr is set.

    Returns:
        (ExtractedData or None if the scan failed, source) where source is
        'embedded' or 'ocr'
    """
    if path.suffix.lower() == PDF_SUFFIX and not force_ocr and processor.has_embedded_text(path):
        return extract_amounts_from_text(processor.extract_embedded_text(path)), 'embedded'

    image = processor.load_image(path)
    data = asyncio.run(scan_receipt_image(
        image,
        processor,
        accept_confidence=config.accept_confidence,
        modes=config.modes,
    ))
    return data, 'ocr'


def find_receipt_files(input_dir: Path) -> List[Path]:
    """Find all receipt images and PDFs under a directory, recursively."""
    suffixes = IMAGE_SUFFIXES | {PDF_SUFFIX}
    receipt_files = sorted(p for p in input_dir.rglob('*') if p.is_file() and p.suffix.lower() in suffixes)
    logger.info(f"Found {len(receipt_files)} receipt files (PDF/PNG/JPG) in {input_dir}")
    return receipt_files


@click.group()
def cli():
    """Tipscan - find the bill total on a scanned receipt."""
    pass


@cli.command()
@click.argument('text_file', type=click.File('r', encoding='utf-8'), default='-')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
@click.option('--explain', is_flag=True, help='Show how every candidate was scored')
@click.option('--debug', is_flag=True, help='Enable debug output')
def extract(text_file, as_json: bool, explain: bool, debug: bool):
    """
    Pick the bill total from OCR text (a file, or stdin).

    Example:
        tipscan extract receipt.txt --explain
    """
    _enable_debug(debug)
    try:
        data = extract_amounts_from_text(text_file.read())
        _echo_result(data, as_json, explain)
    except Exception as e:
        logger.error(f"Extraction failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('image_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--config', 'config_path', type=click.Path(exists=True, path_type=Path),
              help='Path to scan configuration YAML')
@click.option('--force-ocr', is_flag=True, help='Force OCR even if a PDF has embedded text')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
@click.option('--debug', is_flag=True, help='Enable debug output')
def scan(image_path: Path, config_path: Optional[Path], force_ocr: bool, as_json: bool, debug: bool):
    """
    Scan a receipt image or PDF with multi-pass OCR.

    Example:
        tipscan scan receipt.jpg --config config/scan.yml
    """
    _enable_debug(debug)
    try:
        config = _load_config(config_path)
        processor = OCRProcessor(config)

        if image_path.suffix.lower() == PDF_SUFFIX and not force_ocr and processor.has_embedded_text(image_path):
            data = extract_amounts_from_text(processor.extract_embedded_text(image_path))
            _echo_result(data, as_json)
            return

        image = processor.load_image(image_path)
        with tqdm(total=100, desc="Scanning receipt", unit="%", file=sys.stderr) as bar:
            def update_bar(progress: int):
                bar.n = progress
                bar.refresh()

            session = ScanSession(processor,
                                  accept_confidence=config.accept_confidence,
                                  modes=config.modes,
                                  on_progress=update_bar)
            data = asyncio.run(session.scan(image))
            update_bar(100)

        if data is None:
            click.echo(f"Error: {session.state.error}", err=True)
            sys.exit(1)

        _echo_result(data, as_json)

    except Exception as e:
        logger.error(f"Scan failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--in', 'input_dir', required=True, type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Input directory containing receipt images or PDFs')
@click.option('--out', 'output_dir', required=True, type=click.Path(path_type=Path),
              help='Output directory for results')
@click.option('--config', 'config_path', type=click.Path(exists=True, path_type=Path),
              help='Path to scan configuration YAML')
@click.option('--max-workers', default=4, type=int, help='Maximum number of parallel workers')
@click.option('--summary', is_flag=True, help='Include summary section in Excel output')
@click.option('--force-ocr', is_flag=True, help='Force OCR even if a PDF has embedded text')
@click.option('--debug', is_flag=True, help='Enable debug output')
def batch(input_dir: Path,
          output_dir: Path,
          config_path: Optional[Path],
          max_workers: int,
          summary: bool,
          force_ocr: bool,
          debug: bool):
    """
    Scan a folder of receipts and write an Excel report.

    Example:
        tipscan batch --in ./receipts --out ./out --summary
    """
    _enable_debug(debug)
    try:
        config = _load_config(config_path)
        processor = OCRProcessor(config)
        review_queue = ReviewQueue(confidence_threshold=config.accept_confidence)

        receipt_files = find_receipt_files(input_dir)
        if not receipt_files:
            logger.warning("No receipt files found!")
            return

        results: List[Dict[str, Any]] = []
        failed = 0

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_file = {
                executor.submit(scan_file, receipt_file, processor, config, force_ocr): receipt_file
                for receipt_file in receipt_files
            }

            with tqdm(total=len(receipt_files), desc="Scanning receipts") as pbar:
                for future in as_completed(future_to_file):
                    receipt_file = future_to_file[future]
                    try:
                        data, source = future.result()
                        if data is None:
                            raise RuntimeError("scan was cancelled")
                        results.append(ExcelExporter.create_result_dict(str(receipt_file), data, source))
                        review_queue.add_from_extraction(str(receipt_file), data)
                    except Exception as e:
                        logger.error(f"Failed to process {receipt_file}: {e}")
                        failed += 1
                        results.append(ExcelExporter.create_result_dict(str(receipt_file), None, 'ocr', str(e)))
                        review_queue.add_item(
                            file_path=str(receipt_file),
                            reason=f"Processing failed: {e}",
                            raw_snippet=f"Error: {e}",
                        )

                    pbar.update(1)
                    pbar.set_postfix({'failed': failed, 'review': len(review_queue.items)})

        excel_path = output_dir / 'scan_results.xlsx'
        ExcelExporter(excel_path).export_results(results, review_queue.items, include_summary=summary)

        click.echo("\n" + "=" * 50)
        click.echo("SCAN SUMMARY")
        click.echo("=" * 50)
        click.echo(f"Total files found: {len(receipt_files)}")
        click.echo(f"Totals found: {sum(1 for r in results if r['amount'] > 0)}")
        click.echo(f"Failed: {failed}")
        click.echo(f"Items needing review: {len(review_queue.items)}")
        click.echo(f"\nExcel report: {excel_path}")

        if review_queue.items:
            click.echo(f"\n⚠️  {len(review_queue.items)} receipts need manual confirmation!")

    except Exception as e:
        logger.error(f"Batch processing failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    cli()
