"""
Command line entry point

Usage:
    python cli.py                 # build, watch and serve (default)
    python cli.py buildProd       # production build
    python cli.py buildCss --root path/to/site

Exit codes: 0 success, 1 build failure, 2 configuration error
"""
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from builders.core.planner import pipeline_names
from builders.pipeline import AssetPipeline, PipelineError
from builders.schemas import ConfigurationError
from builders.tools.common import BuilderError, FileSystemError

DEFAULT_ENTRY = "default"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="sitebuild",
        description="Static site asset pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Entries:
  default          Development build, then watch src/ and serve build/
  buildDev         Clean + all builders (development)
  buildProd        Clean + all builders + cache busting (production)
  deployGhPages    buildProd, then push build/ to the gh-pages branch
  buildHtml, buildCss, buildJs, buildImg, buildWebp,
  buildSvgSprite, buildFonts, buildFavicon
                   One builder in isolation
        """
    )
    parser.add_argument(
        "entry",
        nargs="?",
        default=DEFAULT_ENTRY,
        choices=[DEFAULT_ENTRY] + pipeline_names(),
        help="Entry point to run (default: %(default)s)"
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Project root (default: SITE_ROOT or the current directory)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Dev server port for the default entry"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        pipeline = AssetPipeline(root=args.root)
        if args.entry == DEFAULT_ENTRY:
            asyncio.run(pipeline.start_dev(port=args.port))
        else:
            pipeline.run(args.entry)
    except ConfigurationError as e:
        print(f"✗ Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except (PipelineError, BuilderError, FileSystemError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return EXIT_FAILED
    except KeyboardInterrupt:
        print("\nStopped")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
