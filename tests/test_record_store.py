"""Tests for the flat-file record store."""

import asyncio
from pathlib import Path

import pytest

from dal.record_store import FlatFileRecordStore
from models.errors import InvalidInput, MalformedDocument, NotFound
from models.image_record import ImageRecord
from services import metadata_codec
from services.variant_generator import VariantGenerator


def _record(record_id: str, title: str = "Cat", date: str = "2024-01-01T00:00:00.000Z") -> ImageRecord:
    return ImageRecord(
        id=record_id,
        title=title,
        original_path=f"/images/{record_id}_original.jpg",
        modal_path=f"/images/{record_id}_modal.jpg",
        thumbnail_path=f"/images/{record_id}_thumb.jpg",
        upload_date=date,
    )


async def _create(store, make_image, record: ImageRecord) -> ImageRecord:
    await store.create_record(record, VariantGenerator().generate(make_image((320, 240))))
    return record


@pytest.mark.asyncio
async def test_list_empty_directory(store):
    assert await store.list_records() == []


@pytest.mark.asyncio
async def test_list_missing_directory_is_empty(tmp_path):
    assert await FlatFileRecordStore(tmp_path / "absent").list_records() == []


@pytest.mark.asyncio
async def test_create_writes_binaries_and_document(store, images_dir: Path, make_image):
    record = await _create(store, make_image, _record("100-aa"))

    for path in (record.original_path, record.modal_path, record.thumbnail_path):
        stored = images_dir / Path(path).name
        assert stored.is_file() and stored.stat().st_size > 0
    assert (images_dir / "100-aa.md").is_file()
    assert await store.get_record("100-aa") == record


@pytest.mark.asyncio
async def test_list_sorts_newest_first_regardless_of_names(store, make_image):
    # Names sort opposite to dates so directory order cannot produce the result.
    await _create(store, make_image, _record("a", "oldest", "2021-05-01T10:00:00.000Z"))
    await _create(store, make_image, _record("b", "middle", "2022-05-01T10:00:00.000Z"))
    await _create(store, make_image, _record("c", "newest", "2023-05-01T10:00:00.000Z"))

    titles = [r.title for r in await store.list_records()]

    assert titles == ["newest", "middle", "oldest"]


@pytest.mark.asyncio
async def test_list_ignores_binaries_and_other_files(store, images_dir: Path, make_image):
    await _create(store, make_image, _record("only"))
    (images_dir / "notes.txt").write_text("scratch")

    records = await store.list_records()

    assert [r.id for r in records] == ["only"]


@pytest.mark.asyncio
async def test_malformed_document_fails_listing(store, images_dir: Path, make_image):
    await _create(store, make_image, _record("good"))
    (images_dir / "bad.md").write_text("title: no delimiter here\n")

    with pytest.raises(MalformedDocument):
        await store.list_records()


@pytest.mark.asyncio
async def test_get_missing_record(store):
    with pytest.raises(NotFound):
        await store.get_record("nope")


@pytest.mark.asyncio
async def test_unsafe_id_is_not_found(store):
    with pytest.raises(NotFound):
        await store.get_record("../secrets")


@pytest.mark.asyncio
async def test_update_title_keeps_other_fields_and_body(store, images_dir: Path, make_image):
    record = await _create(store, make_image, _record("200-bb"))
    doc = images_dir / "200-bb.md"
    doc.write_text(metadata_codec.encode_record(record, body="Reserved description\n"))

    updated = await store.update_title("200-bb", "Renamed")

    assert updated.title == "Renamed"
    assert updated.upload_date == record.upload_date
    assert updated.original_path == record.original_path
    assert updated.modal_path == record.modal_path
    assert updated.thumbnail_path == record.thumbnail_path
    assert metadata_codec.decode(doc.read_text()).body == "Reserved description\n"


@pytest.mark.asyncio
async def test_update_empty_title_leaves_document_untouched(store, images_dir: Path, make_image):
    await _create(store, make_image, _record("300-cc"))
    before = (images_dir / "300-cc.md").read_text()

    with pytest.raises(InvalidInput):
        await store.update_title("300-cc", "   ")

    assert (images_dir / "300-cc.md").read_text() == before


@pytest.mark.asyncio
async def test_update_missing_record(store):
    with pytest.raises(NotFound):
        await store.update_title("missing", "Title")


@pytest.mark.asyncio
async def test_delete_removes_document_and_binaries(store, images_dir: Path, make_image):
    await _create(store, make_image, _record("400-dd"))

    await store.delete_record("400-dd")

    assert list(images_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_delete_tolerates_missing_binary(store, images_dir: Path, make_image):
    await _create(store, make_image, _record("500-ee"))
    (images_dir / "500-ee_original.jpg").unlink()

    await store.delete_record("500-ee")

    assert not (images_dir / "500-ee.md").exists()


@pytest.mark.asyncio
async def test_delete_missing_record_leaves_others(store, images_dir: Path, make_image):
    await _create(store, make_image, _record("keep"))
    before = sorted(p.name for p in images_dir.iterdir())

    with pytest.raises(NotFound):
        await store.delete_record("gone")

    assert sorted(p.name for p in images_dir.iterdir()) == before
    assert [r.id for r in await store.list_records()] == ["keep"]


@pytest.mark.asyncio
async def test_listing_never_sees_partial_documents(store, images_dir: Path, make_image):
    variants = VariantGenerator().generate(make_image((40, 40)))
    finished = asyncio.Event()
    failures = []

    async def writer():
        for n in range(100):
            await store.create_record(_record(f"w{n}"), variants)
            await store.update_title(f"w{n}", f"Renamed {n}")
        finished.set()

    async def lister():
        while not finished.is_set():
            try:
                await store.list_records()
            except MalformedDocument:
                failures.append(1)
            await asyncio.sleep(0)

    await asyncio.gather(writer(), lister(), lister())

    assert failures == []
    assert len(await store.list_records()) == 100
    assert not [p for p in images_dir.iterdir() if p.name.endswith(".tmp")]


@pytest.mark.asyncio
async def test_update_racing_delete_does_not_restore_document(store, images_dir: Path, make_image, monkeypatch):
    await _create(store, make_image, _record("r1"))
    read_document = store._read_document

    async def read_then_delete(record_id):
        text = await read_document(record_id)
        for path in images_dir.iterdir():
            path.unlink()
        return text

    monkeypatch.setattr(store, "_read_document", read_then_delete)

    with pytest.raises(NotFound):
        await store.update_title("r1", "Renamed")

    assert list(images_dir.iterdir()) == []
