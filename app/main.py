"""
Command-line application entry point for the glyph CAPTCHA solver
"""

import argparse
import sys
import os
import re
import logging
import time
import json
from pathlib import Path
from typing import List, Optional, Dict, Any

from core.recognizer import CaptchaRecognizer
from core import reference_store
from core.reference_store import LoadError
from core.segmentation import extract_letters, merge_split_glyph
from utils.image_utils import load_image, fetch_bytes, download_image, is_url
from utils.visualization import visualize_segmentation
from . import config

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.bmp'}

# Challenge pages embed the image as <img src="...jpg">
CAPTCHA_IMG_PATTERN = re.compile(r'<img src="((.*?)\.jpg)">')


def setup_logging(level: str = config.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_recognizer(dataset_path: Optional[str] = None) -> CaptchaRecognizer:
    """Load the reference corpus, exiting on failure"""
    try:
        logger.info("Initializing recognizer...")
        recognizer = CaptchaRecognizer.from_resource(
            dataset_path or config.DATASET_PATH,
            threshold=config.INK_THRESHOLD
        )
        logger.info(f"Recognizer initialized with {len(recognizer.store)} reference glyphs")
        return recognizer
    except LoadError as e:
        logger.error(f"Failed to load reference corpus: {e}")
        if not (dataset_path or config.DATASET_PATH) and not reference_store.DEFAULT_RESOURCE.exists():
            logger.error(
                f"No corpus bundled at {reference_store.DEFAULT_RESOURCE}; "
                "pass --dataset or set DATASET_PATH"
            )
        sys.exit(1)


def process_images(
    recognizer: CaptchaRecognizer,
    sources: List[str],
    output_dir: Optional[str] = None,
    visualize: bool = False,
    save_json: bool = False
) -> Dict[str, Any]:
    """
    Resolve a list of CAPTCHA images

    Args:
        recognizer: Recognizer to use
        sources: Image paths or URLs
        output_dir: Directory to save output files
        visualize: Whether to save a segmentation visualization per image
        save_json: Whether to save JSON output per image

    Returns:
        Dictionary with results for each image
    """
    output_path = Path(output_dir) if output_dir else config.RESULT_DIR
    if visualize or save_json:
        output_path.mkdir(parents=True, exist_ok=True)

    all_results = {}

    for source in sources:
        try:
            logger.info(f"Processing image: {source}")
            image = load_image(source, timeout=config.REQUEST_TIMEOUT)

            result = recognizer.recognize(image)
            all_results[source] = result

            print(f"{source}: {result['text']} ({result['processing_time'] * 1000:.2f}ms)")

            base_name = os.path.splitext(os.path.basename(source))[0] or "captcha"

            if visualize:
                glyphs = merge_split_glyph(extract_letters(image, recognizer.threshold))
                visualize_segmentation(
                    image,
                    result['regions'],
                    glyphs,
                    labels=[c['char'] for c in result['characters']],
                    output_path=str(output_path / f"{base_name}_segmentation.png"),
                    title=result['text']
                )

            if save_json:
                json_file = output_path / f"{base_name}_result.json"
                with open(json_file, 'w', encoding='utf-8') as f:
                    json.dump({"source": source, **result}, f, ensure_ascii=False, indent=2)
                logger.info(f"Saved JSON results to {json_file}")

        except ValueError as e:
            logger.error(f"Error processing {source}: {e}")
            all_results[source] = {"error": str(e)}

    return all_results


def run_benchmark(
    recognizer: CaptchaRecognizer,
    dataset_dir: Path,
    answer_length: int = config.ANSWER_LENGTH
) -> Dict[str, Any]:
    """
    Measure precision over a directory of labelled images

    Each file is named after its expected answer (e.g. ``aatmag.jpg``).
    Files whose stem is shorter than ``answer_length`` are unlabelled and
    skipped.

    Returns:
        Dictionary with solved/total counts, precision, timings and failures
    """
    start = time.time()
    solved = 0
    total = 0
    times = []
    failures = []

    for path in sorted(Path(dataset_dir).iterdir()):
        if path.suffix.lower() not in IMAGE_EXTENSIONS:
            continue
        expect = path.name.split('.')[0]
        if len(expect) < answer_length:
            continue

        total += 1
        now = time.time()
        try:
            result = recognizer.resolve_image(load_image(path))
        except ValueError as e:
            logger.error(f"{path}: Failed to resolve: {e}")
            failures.append({"file": path.name, "expected": expect, "error": str(e)})
            continue
        times.append(time.time() - now)

        if result == expect:
            solved += 1
        else:
            logger.info(f"{path}: Expect '{expect}', got '{result}'")
            failures.append({"file": path.name, "expected": expect, "got": result})

    return {
        "solved": solved,
        "total": total,
        "precision": solved / total * 100 if total else 0.0,
        "average_time": sum(times) / len(times) if times else 0.0,
        "total_time": time.time() - start,
        "failures": failures,
    }


def collect_images(page_url: str, output_dir: Path, count: int) -> List[str]:
    """
    Download challenge images referenced by a CAPTCHA page

    Args:
        page_url: URL of the page embedding the challenge image
        output_dir: Directory to write ``<n>.jpg`` files into
        count: Number of images to collect

    Returns:
        Paths of the downloaded images
    """
    saved = []
    for i in range(count):
        html = fetch_bytes(page_url, timeout=config.REQUEST_TIMEOUT).decode('utf-8', errors='replace')
        match = CAPTCHA_IMG_PATTERN.search(html)
        if match is None:
            raise ValueError(f"No captcha image found on {page_url}")
        saved.append(download_image(
            match.group(1),
            output_path=Path(output_dir) / f"{i}.jpg",
            timeout=config.REQUEST_TIMEOUT
        ))
    return saved


def main(argv: Optional[List[str]] = None):
    """Main entry point for the command-line application"""
    parser = argparse.ArgumentParser(description="Glyph CAPTCHA solver")
    parser.add_argument(
        "--dataset",
        help="Path to the reference corpus (defaults to the bundled one)"
    )
    subparsers = parser.add_subparsers(dest="command")

    solve = subparsers.add_parser("solve", help="Resolve CAPTCHA images")
    solve.add_argument("images", nargs="+", help="Image paths or URLs")
    solve.add_argument("--output-dir", help="Directory to save output files")
    solve.add_argument("--visualize", action="store_true",
                       help="Save a visualization of the detected glyphs")
    solve.add_argument("--save-json", action="store_true", help="Save results as JSON")

    bench = subparsers.add_parser("benchmark", help="Measure precision on labelled images")
    bench.add_argument("directory", nargs="?", default=str(config.DATASET_DIR),
                       help="Directory of images named <answer>.jpg")
    bench.add_argument("--json", action="store_true", help="Print the report as JSON")

    collect = subparsers.add_parser("collect", help="Download challenge images")
    collect.add_argument("url", help="Page embedding the challenge image")
    collect.add_argument("--count", type=int, default=100, help="Number of images")
    collect.add_argument("--output-dir", default=str(config.DATASET_DIR),
                         help="Where to store the images")

    args = parser.parse_args(argv)
    setup_logging()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "collect":
        if not is_url(args.url):
            parser.error(f"Not a URL: {args.url}")
        print("Downloading captcha images...")
        try:
            collect_images(args.url, Path(args.output_dir), args.count)
        except ValueError as e:
            logger.error(str(e))
            sys.exit(1)
        print("Done!")
        return

    recognizer = create_recognizer(args.dataset)

    if args.command == "solve":
        results = process_images(
            recognizer,
            args.images,
            output_dir=args.output_dir,
            visualize=args.visualize,
            save_json=args.save_json
        )
        if any("error" in r for r in results.values()):
            sys.exit(1)

    elif args.command == "benchmark":
        report = run_benchmark(recognizer, Path(args.directory))
        if args.json:
            print(json.dumps(report, indent=2))
        else:
            print(f"Solved: {report['solved']}/{report['total']}")
            print(f"Precision: {report['precision']:.2f}%")
            print(f"Average time: {report['average_time'] * 1000:.2f}ms")
            print(f"Total time: {report['total_time']:.2f}s")


if __name__ == "__main__":
    main()
