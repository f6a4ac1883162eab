import asyncio
import logging
import os
import zipfile

logger = logging.getLogger(__name__)


def _write_zip(source_dir: str, zip_path: str) -> int:
    count = 0
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as z:
        for root, dirs, files in os.walk(source_dir):
            dirs.sort()
            for fn in sorted(files):
                fp = os.path.join(root, fn)
                arcname = os.path.relpath(fp, source_dir).replace(os.sep, "/")
                z.write(fp, arcname)
                count += 1
    return count


async def create_archive(source_dir: str, zip_path: str) -> str:
    """Zips everything under ``source_dir`` into ``zip_path`` at maximum compression."""
    os.makedirs(os.path.dirname(os.path.abspath(zip_path)), exist_ok=True)
    count = await asyncio.to_thread(_write_zip, source_dir, zip_path)
    logger.info("[ARCHIVE] %d files -> %s", count, zip_path)
    return zip_path
