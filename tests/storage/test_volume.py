import pytest

from infrastructure.external.storage.exceptions import (
    ConfigurationError,
    InvalidationError,
    NotFoundError,
    VolumeException,
)
from infrastructure.external.storage.config import VolumeConfig
from infrastructure.external.storage.providers.memory import InMemoryObjectStore
from infrastructure.external.storage.volume import S3Volume


async def _collect(volume, prefix="", recursive=False):
    return [entry async for entry in volume.list(prefix, recursive=recursive)]


@pytest.mark.asyncio
async def test_write_read_delete(volume):
    await volume.write("docs/readme.txt", b"hello")

    assert await volume.read("docs/readme.txt") == b"hello"
    assert await volume.exists("docs/readme.txt")
    assert await volume.get_file_size("docs/readme.txt") == 5
    assert await volume.get_date_modified("docs/readme.txt") is not None

    await volume.delete("docs/readme.txt")
    assert not await volume.exists("docs/readme.txt")
    with pytest.raises(NotFoundError):
        await volume.read("docs/readme.txt")


@pytest.mark.asyncio
async def test_delete_missing_file_is_noop(volume):
    await volume.delete("never/written.txt")


@pytest.mark.asyncio
async def test_keys_live_under_subfolder(make_volume):
    volume = make_volume(subfolder="/assets/")
    await volume.write("img/a.png", b"png")

    assert await volume.store.get_object("assets/img/a.png") == b"png"
    assert volume.full_path("/img/a.png") == "assets/img/a.png"


@pytest.mark.asyncio
async def test_write_applies_derived_metadata(make_volume):
    volume = make_volume(expires="1 day", storage_class="REDUCED_REDUNDANCY")
    await volume.write("img/a.png", b"png")

    head = await volume.get_metadata("img/a.png")
    assert head.content_type == "image/png"
    assert head.cache_control == "max-age=86400, must-revalidate"
    assert head.storage_class == "REDUCED_REDUNDANCY"


@pytest.mark.asyncio
async def test_write_without_settings_adds_no_cache_or_class(volume):
    await volume.write("a.txt", b"x")
    head = await volume.get_metadata("a.txt")
    assert head.cache_control is None
    assert head.storage_class is None


@pytest.mark.asyncio
async def test_invalid_expiry_is_ignored(make_volume):
    volume = make_volume(expires="whenever", storage_class="STANDARD_IA")
    await volume.write("a.txt", b"x")
    head = await volume.get_metadata("a.txt")
    assert head.cache_control is None
    assert head.storage_class == "STANDARD_IA"


@pytest.mark.asyncio
async def test_unrepresentable_expiry_is_ignored(make_volume):
    volume = make_volume(expires="10000 years")
    await volume.write("a.txt", b"x")

    head = await volume.get_metadata("a.txt")
    assert head.cache_control is None
    assert await volume.read("a.txt") == b"x"


@pytest.mark.asyncio
async def test_explicit_metadata_wins(make_volume):
    volume = make_volume(expires="1 day")
    await volume.write("a.bin", b"x", {"ContentType": "text/plain", "CacheControl": "no-cache"})
    head = await volume.get_metadata("a.bin")
    assert head.content_type == "text/plain"
    assert head.cache_control == "no-cache"


@pytest.mark.asyncio
async def test_read_stream_and_save_locally(volume, tmp_path):
    payload = b"0123456789" * 2000
    await volume.write("big.bin", payload)

    chunks = [c async for c in volume.read_stream("big.bin", chunk_size=4096)]
    assert b"".join(chunks) == payload
    assert len(chunks) == 5

    target = tmp_path / "nested" / "big.bin"
    written = await volume.save_file_locally("big.bin", target)
    assert written == len(payload)
    assert target.read_bytes() == payload


@pytest.mark.asyncio
async def test_copy_keeps_source(volume):
    await volume.write("a.txt", b"A")
    await volume.copy("a.txt", "b.txt")
    assert await volume.read("a.txt") == b"A"
    assert await volume.read("b.txt") == b"A"


@pytest.mark.asyncio
async def test_rename_moves_content(volume):
    await volume.write("old/name.txt", b"data")
    await volume.rename("old/name.txt", "new/name.txt")

    assert await volume.read("new/name.txt") == b"data"
    assert not await volume.exists("old/name.txt")
    with pytest.raises(NotFoundError):
        await volume.read("old/name.txt")


@pytest.mark.asyncio
@pytest.mark.parametrize("dst", ["a.txt", "/a.txt", "//a.txt"])
async def test_rename_onto_itself_keeps_file(cdn_volume, dst):
    await cdn_volume.write("a.txt", b"data")
    cdn_volume.cdn.requests.clear()

    await cdn_volume.rename("a.txt", dst)

    assert await cdn_volume.read("a.txt") == b"data"
    assert cdn_volume.cdn.requests == []


@pytest.mark.asyncio
async def test_rename_missing_source_raises(volume):
    with pytest.raises(NotFoundError):
        await volume.rename("missing.txt", "other.txt")
    assert not await volume.exists("other.txt")


@pytest.mark.asyncio
async def test_write_invalidates_one_path(cdn_volume):
    await cdn_volume.write("photos/img.png", b"png")

    requests = cdn_volume.cdn.requests
    assert len(requests) == 1
    assert requests[0].distribution_id == "E123EXAMPLE"
    assert requests[0].paths == ("/photos/img.png",)


@pytest.mark.asyncio
async def test_invalidation_uses_fresh_caller_reference(cdn_volume):
    await cdn_volume.write("a.txt", b"1")
    await cdn_volume.write("a.txt", b"2")
    refs = [r.caller_reference for r in cdn_volume.cdn.requests]
    assert len(refs) == 2
    assert refs[0] != refs[1]


@pytest.mark.asyncio
async def test_no_cdn_no_invalidation(volume):
    assert volume.cdn is None
    await volume.write("a.txt", b"1")
    assert await volume.invalidate_cdn_path("a.txt") is True


@pytest.mark.asyncio
async def test_failed_invalidation_surfaces_after_write(cdn_volume):
    cdn_volume.cdn.fail_with = "Access denied"

    with pytest.raises(InvalidationError) as exc:
        await cdn_volume.write("photos/img.png", b"png")

    assert exc.value.path == "photos/img.png"
    assert "photos/img.png" in str(exc.value)
    # The upload itself went through
    assert await cdn_volume.read("photos/img.png") == b"png"


@pytest.mark.asyncio
async def test_delete_and_rename_invalidate(cdn_volume):
    await cdn_volume.write("a.txt", b"1")
    await cdn_volume.rename("a.txt", "b.txt")
    await cdn_volume.delete("b.txt")

    paths = [r.paths for r in cdn_volume.cdn.requests]
    assert paths == [("/a.txt",), ("/b.txt",), ("/a.txt",), ("/b.txt",)]


@pytest.mark.asyncio
async def test_rename_invalidation_failure_after_move(cdn_volume):
    await cdn_volume.write("a.txt", b"1")
    cdn_volume.cdn.fail_with = "throttled"

    with pytest.raises(InvalidationError) as exc:
        await cdn_volume.rename("a.txt", "b.txt")

    assert exc.value.path == "b.txt"
    assert await cdn_volume.read("b.txt") == b"1"
    assert not await cdn_volume.exists("a.txt")


def test_cdn_required_with_distribution_id():
    config = VolumeConfig(bucket="b", region="us-east-1", cf_distribution_id="E1")
    with pytest.raises(ConfigurationError):
        S3Volume(config, InMemoryObjectStore())


@pytest.mark.asyncio
async def test_list_top_level(volume):
    await volume.write("a.txt", b"1")
    await volume.write("img/b.png", b"22")
    await volume.write("img/deep/c.png", b"333")

    entries = await _collect(volume)
    by_path = {e.path: e for e in entries}

    assert set(by_path) == {"a.txt", "img"}
    assert by_path["img"].is_directory
    assert not by_path["a.txt"].is_directory
    assert by_path["a.txt"].size == 1


@pytest.mark.asyncio
async def test_list_recursive_reports_each_directory_once(make_volume):
    volume = make_volume(subfolder="assets")
    await volume.write("img/b.png", b"22")
    await volume.write("img/deep/c.png", b"333")
    await volume.write("img/deep/d.png", b"4444")

    entries = await _collect(volume, "img", recursive=True)
    paths = [e.path for e in entries]

    assert sorted(paths) == ["img/b.png", "img/deep", "img/deep/c.png", "img/deep/d.png"]
    assert paths.count("img/deep") == 1


@pytest.mark.asyncio
async def test_create_dir_marker_is_listed(volume):
    await volume.create_dir("empty")

    assert await volume.folder_exists("empty")
    assert not await volume.folder_exists("missing")

    entries = await _collect(volume)
    assert [(e.path, e.is_directory) for e in entries] == [("empty", True)]
    assert await _collect(volume, "empty") == []


@pytest.mark.asyncio
async def test_delete_dir(cdn_volume):
    await cdn_volume.write("gallery/1.png", b"1")
    await cdn_volume.write("gallery/sub/2.png", b"2")
    await cdn_volume.write("keep.txt", b"k")
    cdn_volume.cdn.requests.clear()

    await cdn_volume.delete_dir("gallery")

    assert not await cdn_volume.folder_exists("gallery")
    assert await cdn_volume.exists("keep.txt")
    purged = sorted(p for r in cdn_volume.cdn.requests for p in r.paths)
    assert purged == ["/gallery/1.png", "/gallery/sub/2.png"]


@pytest.mark.asyncio
async def test_rename_dir(volume):
    await volume.write("src/1.txt", b"1")
    await volume.write("src/sub/2.txt", b"2")
    await volume.write("srcx/other.txt", b"x")

    await volume.rename_dir("src", "dst")

    assert await volume.read("dst/1.txt") == b"1"
    assert await volume.read("dst/sub/2.txt") == b"2"
    assert not await volume.folder_exists("src")
    assert await volume.exists("srcx/other.txt")


@pytest.mark.asyncio
async def test_rename_dir_onto_itself_keeps_contents(volume):
    await volume.write("src/1.txt", b"1")
    await volume.write("src/sub/2.txt", b"2")

    await volume.rename_dir("src", "/src/")

    assert await volume.read("src/1.txt") == b"1"
    assert await volume.read("src/sub/2.txt") == b"2"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["", "/"])
async def test_root_directory_operations_refused(volume, path):
    with pytest.raises(VolumeException):
        await volume.delete_dir(path)
    with pytest.raises(VolumeException):
        await volume.rename_dir(path, "elsewhere")
    with pytest.raises(VolumeException):
        await volume.rename_dir(path, path)


@pytest.mark.asyncio
async def test_presigned_url(volume):
    await volume.write("a.txt", b"1")
    url = await volume.get_presigned_url("a.txt", expires_in=60)
    assert url == "memory://test-bucket/a.txt?expires_in=60"


def test_root_path_and_url(make_volume):
    volume = make_volume(subfolder="assets")
    assert volume.get_root_path() is None
    assert volume.get_root_url() == "https://cdn.example.com/assets/"
    assert volume.get_public_url("/img/a.png") == "https://cdn.example.com/assets/img/a.png"


@pytest.mark.asyncio
async def test_health_check(volume):
    assert await volume.health_check() is True
