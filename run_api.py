"""
Entry point for the gallery API server.

Usage:
    python run_api.py                    # Development (auto-reload)
    python run_api.py --production       # Production mode
    python run_api.py --scan             # Scan + backfills once, then exit

Or directly with uvicorn:
    uvicorn api:create_app --factory --reload --port 8000
"""

import os
import sys
import logging
import argparse

# Ensure the script's directory is in Python path for local imports
_script_dir = os.path.dirname(os.path.abspath(__file__))
if _script_dir not in sys.path:
    sys.path.insert(0, _script_dir)

logger = logging.getLogger(__name__)


def run_scan():
    """Scan the configured directory and run every backfill pass."""
    from api.config import load_config
    from db import CatalogStore
    from processing.image_processor import ImageProcessor
    from processing.ingest import IngestionPipeline

    config = load_config()
    store = CatalogStore(config['db_path'])
    try:
        processor = ImageProcessor(config['public_dir'], config.get('images'))
        pipeline = IngestionPipeline(store, processor, config['scan_dir'], config['public_dir'])
        result = pipeline.scan_photos()
        sizes = pipeline.backfill_file_sizes()
        exif = pipeline.backfill_exif()
        hues = pipeline.backfill_dominant_hue()
        logger.info(f"Done: {result.added} added, {result.skipped} skipped, "
                    f"backfilled {sizes} sizes, {exif} EXIF, {hues} hues")
    finally:
        store.close()


def main():
    parser = argparse.ArgumentParser(description='Landscape Gallery API Server')
    parser.add_argument('--port', type=int, default=int(os.environ.get('PORT', 8000)),
                        help='Port to listen on (default: 8000)')
    parser.add_argument('--host', default='0.0.0.0', help='Host to bind to (default: 0.0.0.0)')
    parser.add_argument('--production', action='store_true', help='Run in production mode')
    parser.add_argument('--workers', type=int, default=1, help='Number of workers (production)')
    parser.add_argument('--scan', action='store_true', help='Scan the photo directory and exit')
    args = parser.parse_args()

    logging.basicConfig(
        level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.scan:
        run_scan()
        return

    import uvicorn

    if args.production:
        uvicorn.run(
            "api:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            workers=args.workers,
        )
    else:
        uvicorn.run(
            "api:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=True,
            reload_dirs=[_script_dir],
        )


if __name__ == '__main__':
    main()
