"""Command-line front end: extract text from image files in one batch.

Usage:
    ocr-queue scan1.png scan2.jpg -o extracted_text.txt
    ocr-queue photos/*.webp --provider mock
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from ocr_queue.batch.controller import QueueController
from ocr_queue.batch.models import QueueSnapshot, QueueStatus
from ocr_queue.capture.uploads import load_file
from ocr_queue.core.config import settings
from ocr_queue.core.errors import UnsupportedUpload
from ocr_queue.core.logging import configure_logging
from ocr_queue.extraction.factory import get_extraction_client

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ocr-queue", description="Extract text from a batch of images.")
    parser.add_argument("files", nargs="+", type=Path, help="JPG, PNG, or WEBP images")
    parser.add_argument("-o", "--output", type=Path, help="write the combined text here instead of stdout")
    parser.add_argument("--provider", choices=["gemini", "openai", "mock"], help="override EXTRACTION_PROVIDER")
    parser.add_argument("--log-level", default=settings.log_level)
    return parser


def _print_progress(snapshot: QueueSnapshot) -> None:
    done = snapshot.count(QueueStatus.DONE) + snapshot.count(QueueStatus.ERROR)
    print(f"\r[{done}/{len(snapshot.items)}] processed", end="", file=sys.stderr, flush=True)


async def run_batch(paths: list[Path], provider: str | None, output: Path | None) -> int:
    payloads = []
    for path in paths:
        try:
            payloads.append(load_file(path, max_bytes=settings.max_upload_bytes))
        except (UnsupportedUpload, OSError) as exc:
            print(f"skipped {path}: {exc}", file=sys.stderr)
    if not payloads:
        print("no usable files", file=sys.stderr)
        return 2

    controller = QueueController(get_extraction_client(provider))
    controller.subscribe(_print_progress)
    try:
        controller.enqueue(payloads)
        await controller.wait_idle()
        print(file=sys.stderr)

        snapshot = controller.snapshot()
        for item in snapshot.items:
            detail = f": {item.failure}" if item.status is QueueStatus.ERROR else ""
            print(f"{item.status.value:<5} {item.name}{detail}", file=sys.stderr)

        text = controller.aggregate()
        if output is not None:
            output.write_text(text, encoding="utf-8")
            print(f"wrote {output}", file=sys.stderr)
        elif text:
            sys.stdout.write(text)

        return 1 if snapshot.count(QueueStatus.ERROR) else 0
    finally:
        await controller.aclose()


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level, settings.log_json)
    return asyncio.run(run_batch(args.files, args.provider, args.output))


if __name__ == "__main__":
    sys.exit(main())
