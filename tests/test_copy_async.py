"""Tests for the asynchronous copy engine and its conflict protocol."""

import asyncio
import errno
import os

import pytest

from fsjet.copy import (
    ConflictAction,
    ConflictScope,
    ConflictSettings,
    copy_async,
)
from fsjet.copy import _io, _ops
from fsjet.exceptions import AlreadyExistsError, ErrorKind, NotFoundError, PermissionDeniedError
from fsjet.node import NodeType

pytestmark = pytest.mark.asyncio


@pytest.fixture
def dst_with_old(tmp_path, src_tree):
    """dst/a.txt ("old") and dst/sub/b.txt ("old b") already present."""
    dst = tmp_path / "dst"
    (dst / "sub").mkdir(parents=True)
    (dst / "a.txt").write_text("old")
    (dst / "sub" / "b.txt").write_text("old b")
    return dst


def always(action):
    return ConflictSettings(action, ConflictScope.ALWAYS)


class TestCopyAsyncBasics:
    async def test_simple_copy(self, src_tree, tmp_path):
        dst = tmp_path / "dst"
        assert await copy_async(str(src_tree), str(dst)) is None
        assert (dst / "a.txt").read_text() == "hi"
        assert (dst / "sub" / "b.txt").read_text() == "bye"
        assert os.readlink(dst / "link") == "a.txt"

    async def test_missing_source(self, tmp_path):
        with pytest.raises(NotFoundError):
            await copy_async(str(tmp_path / "nope"), str(tmp_path / "dst"))

    async def test_existing_destination_without_policy(self, src_tree, dst_with_old):
        with pytest.raises(AlreadyExistsError):
            await copy_async(str(src_tree), str(dst_with_old))
        assert (dst_with_old / "a.txt").read_text() == "old"

    async def test_overwrite_flag(self, src_tree, dst_with_old):
        await copy_async(str(src_tree), str(dst_with_old), overwrite=True)
        assert (dst_with_old / "a.txt").read_text() == "hi"
        assert (dst_with_old / "sub" / "b.txt").read_text() == "bye"

    async def test_concurrency_limit(self, five_files, tmp_path):
        await copy_async(str(five_files), str(tmp_path / "dst"), concurrency=2)
        assert sorted(os.listdir(tmp_path / "dst")) == [f"f{i}.txt" for i in range(1, 6)]

    async def test_matching(self, src_tree, tmp_path):
        dst = tmp_path / "dst"
        await copy_async(str(src_tree), str(dst), matching=["*.txt"])
        assert (dst / "sub" / "b.txt").read_text() == "bye"
        assert not os.path.lexists(dst / "link")


class TestConflictResolution:
    async def test_skip_on_conflict(self, src_tree, dst_with_old):
        await copy_async(str(src_tree), str(dst_with_old),
                         conflict_callback=lambda path, node, kind: ConflictSettings(ConflictAction.SKIP))
        assert (dst_with_old / "a.txt").read_text() == "old"
        assert (dst_with_old / "sub" / "b.txt").read_text() == "old b"
        assert os.readlink(dst_with_old / "link") == "a.txt"

    async def test_callback_receives_destination(self, src_tree, dst_with_old):
        seen = []

        def callback(path, node, kind):
            seen.append((os.path.relpath(path, dst_with_old), node.type, kind))
            return ConflictSettings(ConflictAction.SKIP)

        await copy_async(str(src_tree), str(dst_with_old), conflict_callback=callback)
        assert sorted(seen) == sorted([
            (".", NodeType.DIR, ErrorKind.ALREADY_EXISTS),
            ("a.txt", NodeType.FILE, ErrorKind.ALREADY_EXISTS),
            ("sub", NodeType.DIR, ErrorKind.ALREADY_EXISTS),
            (os.path.join("sub", "b.txt"), NodeType.FILE, ErrorKind.ALREADY_EXISTS),
        ])

    async def test_always_scope_calls_back_once(self, src_tree, dst_with_old):
        calls = []

        async def callback(path, node, kind):
            calls.append(path)
            await asyncio.sleep(0.01)
            return always(ConflictAction.OVERWRITE)

        await copy_async(str(src_tree), str(dst_with_old), conflict_callback=callback)
        assert len(calls) == 1
        assert (dst_with_old / "a.txt").read_text() == "hi"
        assert (dst_with_old / "sub" / "b.txt").read_text() == "bye"

    async def test_static_settings_skip_callback(self, src_tree, dst_with_old):
        def callback(path, node, kind):
            raise AssertionError("callback must not run")

        await copy_async(str(src_tree), str(dst_with_old), conflict_callback=callback,
                         conflict_settings=ConflictSettings(ConflictAction.OVERWRITE))
        assert (dst_with_old / "a.txt").read_text() == "hi"

    async def test_if_newer(self, src_tree, dst_with_old):
        os.utime(src_tree / "a.txt", (1000, 1000))
        os.utime(dst_with_old / "a.txt", (2000, 2000))
        os.utime(src_tree / "sub" / "b.txt", (3000, 3000))
        os.utime(dst_with_old / "sub" / "b.txt", (2000, 2000))
        await copy_async(str(src_tree), str(dst_with_old),
                         conflict_settings=always(ConflictAction.IF_NEWER))
        assert (dst_with_old / "a.txt").read_text() == "old"
        assert (dst_with_old / "sub" / "b.txt").read_text() == "bye"

    async def test_if_size_differs(self, src_tree, dst_with_old):
        (dst_with_old / "a.txt").write_text("HI")
        await copy_async(str(src_tree), str(dst_with_old),
                         conflict_settings=always(ConflictAction.IF_SIZE_DIFFERS))
        assert (dst_with_old / "a.txt").read_text() == "HI"
        assert (dst_with_old / "sub" / "b.txt").read_text() == "bye"

    async def test_append(self, src_tree, dst_with_old):
        await copy_async(str(src_tree), str(dst_with_old),
                         conflict_settings=always(ConflictAction.APPEND))
        assert (dst_with_old / "a.txt").read_text() == "oldhi"

    async def test_throw(self, src_tree, dst_with_old):
        with pytest.raises(AlreadyExistsError):
            await copy_async(str(src_tree), str(dst_with_old),
                             conflict_settings=ConflictSettings(ConflictAction.THROW))

    async def test_abort_on_conflict(self, src_tree, dst_with_old):
        await copy_async(str(src_tree), str(dst_with_old),
                         conflict_settings=ConflictSettings(ConflictAction.ABORT))
        assert (dst_with_old / "a.txt").read_text() == "old"
        assert not os.path.lexists(dst_with_old / "link")

    async def test_retry_rechecks_destination(self, src_tree, dst_with_old):
        answers = []

        def callback(path, node, kind):
            if path.endswith("a.txt") and not answers:
                answers.append("retry")
                os.unlink(path)
                return ConflictSettings(ConflictAction.RETRY)
            return ConflictSettings(ConflictAction.SKIP)

        await copy_async(str(src_tree), str(dst_with_old), conflict_callback=callback)
        assert (dst_with_old / "a.txt").read_text() == "hi"

    async def test_wrong_kind_replaced(self, src_tree, tmp_path):
        dst = tmp_path / "dst"
        dst.mkdir()
        (dst / "sub").write_text("file in the way")
        await copy_async(str(src_tree), str(dst), overwrite=True)
        assert (dst / "sub" / "b.txt").read_text() == "bye"

    async def test_callback_must_return_settings(self, src_tree, dst_with_old):
        with pytest.raises(TypeError):
            await copy_async(str(src_tree), str(dst_with_old),
                             conflict_callback=lambda path, node, kind: "skip")


class TestReports:
    async def test_report_mode(self, src_tree, dst_with_old):
        reports = await copy_async(str(src_tree), str(dst_with_old),
                                   conflict_settings=ConflictSettings(ConflictAction.SKIP),
                                   report=True)
        paths = sorted(os.path.relpath(r.path, dst_with_old) for r in reports)
        assert paths == sorted([".", "a.txt", "sub", os.path.join("sub", "b.txt")])
        assert all(r.error is ErrorKind.ALREADY_EXISTS for r in reports)
        assert all(r.resolution.action is ConflictAction.SKIP for r in reports)

    async def test_report_empty_without_conflicts(self, src_tree, tmp_path):
        assert await copy_async(str(src_tree), str(tmp_path / "dst"), report=True) == []


class TestWriteErrors:
    async def test_error_without_resolver_propagates(self, src_tree, tmp_path, monkeypatch):
        async def failing(task, **kwargs):
            raise PermissionError(errno.EACCES, "denied", task.destination)

        monkeypatch.setattr(_ops, "copy_item_async", failing)
        with pytest.raises(PermissionDeniedError):
            await copy_async(str(src_tree), str(tmp_path / "dst"))

    async def test_retry_after_write_error(self, src_tree, tmp_path, monkeypatch):
        real = _ops.copy_item_async
        failures = []

        async def flaky(task, **kwargs):
            if task.source.endswith("a.txt") and not failures:
                failures.append(task.destination)
                raise PermissionError(errno.EACCES, "denied", task.destination)
            await real(task, **kwargs)

        kinds = []

        def callback(path, node, kind):
            kinds.append(kind)
            return ConflictSettings(ConflictAction.RETRY)

        monkeypatch.setattr(_ops, "copy_item_async", flaky)
        await copy_async(str(src_tree), str(tmp_path / "dst"), conflict_callback=callback)
        assert kinds == [ErrorKind.PERMISSION_DENIED]
        assert (tmp_path / "dst" / "a.txt").read_text() == "hi"

    async def test_skip_after_write_error(self, src_tree, tmp_path, monkeypatch):
        real = _ops.copy_item_async

        async def failing_for_a(task, **kwargs):
            if task.source.endswith("a.txt"):
                raise PermissionError(errno.EACCES, "denied", task.destination)
            await real(task, **kwargs)

        monkeypatch.setattr(_ops, "copy_item_async", failing_for_a)
        reports = await copy_async(
            str(src_tree), str(tmp_path / "dst"),
            conflict_callback=lambda path, node, kind: ConflictSettings(ConflictAction.SKIP),
            report=True)
        assert not (tmp_path / "dst" / "a.txt").exists()
        assert (tmp_path / "dst" / "sub" / "b.txt").read_text() == "bye"
        assert [r.error for r in reports] == [ErrorKind.PERMISSION_DENIED]

    async def test_content_action_reraises(self, src_tree, tmp_path, monkeypatch):
        async def failing(task, **kwargs):
            raise PermissionError(errno.EACCES, "denied", task.destination)

        monkeypatch.setattr(_ops, "copy_item_async", failing)
        with pytest.raises(PermissionDeniedError):
            await copy_async(str(src_tree), str(tmp_path / "dst"), overwrite=True)


class TestProgress:
    async def test_abort_mid_copy(self, five_files, tmp_path):
        dst = tmp_path / "dst"
        copied = []

        def progress(path, current, total, node):
            assert total == -1
            if node.type is NodeType.FILE:
                copied.append(path)
            return len(copied) < 2

        assert await copy_async(str(five_files), str(dst), progress=progress,
                                concurrency=1) is None
        assert sorted(os.listdir(dst)) == ["f1.txt", "f2.txt"]

    async def test_abort_mid_copy_with_default_concurrency(self, tmp_path):
        src = tmp_path / "many"
        src.mkdir()
        for i in range(30):
            (src / f"f{i:02}.txt").write_text(str(i))

        for attempt in range(10):
            dst = tmp_path / f"dst{attempt}"
            copied = []

            def progress(path, current, total, node):
                if node.type is NodeType.FILE:
                    copied.append(os.path.basename(path))
                return len(copied) < 2

            await copy_async(str(src), str(dst), progress=progress)
            assert len(copied) == 2
            assert sorted(os.listdir(dst)) == sorted(copied)

    async def test_preserve_times_on_directories(self, src_tree, tmp_path):
        os.utime(src_tree / "sub", (1_000_000, 1_000_000))
        os.utime(src_tree, (2_000_000, 2_000_000))
        dst = tmp_path / "dst"
        await copy_async(str(src_tree), str(dst), preserve_times=True)
        assert os.stat(dst / "sub").st_mtime == pytest.approx(1_000_000)
        assert os.stat(dst).st_mtime == pytest.approx(2_000_000)
        assert os.stat(dst / "sub" / "b.txt").st_mtime == pytest.approx(
            os.stat(src_tree / "sub" / "b.txt").st_mtime)

    async def test_no_staging_files_left(self, src_tree, dst_with_old):
        await copy_async(str(src_tree), str(dst_with_old), overwrite=True)
        assert sorted(os.listdir(dst_with_old)) == ["a.txt", "link", "sub"]
        assert (dst_with_old / "a.txt").read_text() == "hi"

    async def test_write_progress_for_large_files(self, tmp_path, monkeypatch):
        monkeypatch.setattr(_io, "LARGE_FILE_THRESHOLD", 10)
        monkeypatch.setattr(_io, "CHUNK_SIZE", 8)
        src = tmp_path / "big.bin"
        src.write_bytes(bytes(range(20)))
        seen = []
        await copy_async(str(src), str(tmp_path / "copy.bin"), throttle=0.001,
                         write_progress=lambda path, done, total: seen.append((done, total)))
        assert seen == [(8, 20), (16, 20), (20, 20)]
        assert (tmp_path / "copy.bin").read_bytes() == bytes(range(20))

    async def test_write_progress_reports_destination(self, tmp_path, monkeypatch):
        monkeypatch.setattr(_io, "LARGE_FILE_THRESHOLD", 10)
        src = tmp_path / "big.bin"
        src.write_bytes(bytes(range(20)))
        paths = set()
        await copy_async(str(src), str(tmp_path / "copy.bin"),
                         write_progress=lambda path, done, total: paths.add(path))
        assert paths == {str(tmp_path / "copy.bin")}

    async def test_small_files_have_no_write_progress(self, src_tree, tmp_path):
        seen = []
        await copy_async(str(src_tree), str(tmp_path / "dst"),
                         write_progress=lambda *args: seen.append(args))
        assert seen == []
