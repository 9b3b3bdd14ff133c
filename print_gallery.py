"""Print every gallery record stored in the images directory.

This script lists each metadata document newest first, printing its header
values, and can sweep binaries that no document references. It reuses the
same `GALLERY_IMAGES_DIR` behavior as the application via
`utils.settings.GallerySettings`.

Run: set the `GALLERY_IMAGES_DIR` environment variable (or rely on the
      default `public/images` folder) and run `python print_gallery.py`.
      Pass `--sweep` to also delete orphaned binaries.
"""
import asyncio
import sys

from dotenv import load_dotenv

from dal.record_store import FlatFileRecordStore
from utils.orphan_cleaner import OrphanCleaner
from utils.settings import GallerySettings


async def main(sweep: bool = False) -> None:
    """Print all records, then optionally remove orphaned binaries."""
    settings = GallerySettings.from_env()
    store = FlatFileRecordStore(settings.images_dir, settings.url_prefix)

    records = await store.list_records()
    print(f"Images in {settings.images_dir}: {len(records)}")
    for record in records:
        print(f"  {record.id}: title={record.title!r}; uploaded={record.upload_date}")
        print(f"    original={record.original_path}")
        print(f"    modal={record.modal_path}")
        print(f"    thumbnail={record.thumbnail_path}")

    if sweep:
        removed = await OrphanCleaner(settings.images_dir).prune_orphans()
        for name in removed:
            print(f"removed orphan {name}")


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(main(sweep="--sweep" in sys.argv[1:]))
