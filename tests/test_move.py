"""Tests for move and rename."""

import errno
import os

import pytest

from fsjet.copy import move_async, move_sync, rename_async, rename_sync
from fsjet.exceptions import NotFoundError


@pytest.fixture
def cross_device(monkeypatch):
    """Make every ``os.rename`` fail as if crossing filesystems."""
    def rename(src, dst, *args, **kwargs):
        raise OSError(errno.EXDEV, "Invalid cross-device link", src)

    monkeypatch.setattr(os, "rename", rename)


class TestMove:
    def test_file(self, src_tree, tmp_path):
        move_sync(str(src_tree / "a.txt"), str(tmp_path / "moved.txt"))
        assert (tmp_path / "moved.txt").read_text() == "hi"
        assert not (src_tree / "a.txt").exists()

    def test_directory(self, src_tree, tmp_path):
        move_sync(str(src_tree), str(tmp_path / "moved"))
        assert (tmp_path / "moved" / "sub" / "b.txt").read_text() == "bye"
        assert not src_tree.exists()

    def test_creates_missing_parent(self, src_tree, tmp_path):
        move_sync(str(src_tree / "a.txt"), str(tmp_path / "x" / "y" / "a.txt"))
        assert (tmp_path / "x" / "y" / "a.txt").read_text() == "hi"

    def test_missing_source(self, tmp_path):
        with pytest.raises(NotFoundError) as info:
            move_sync(str(tmp_path / "nope"), str(tmp_path / "dst"))
        assert "Path to move doesn't exist" in str(info.value)

    def test_cross_device_falls_back_to_copy(self, src_tree, tmp_path, cross_device):
        move_sync(str(src_tree), str(tmp_path / "moved"))
        assert (tmp_path / "moved" / "a.txt").read_text() == "hi"
        assert os.readlink(tmp_path / "moved" / "link") == "a.txt"
        assert not src_tree.exists()

    @pytest.mark.asyncio
    async def test_async(self, src_tree, tmp_path):
        await move_async(str(src_tree), str(tmp_path / "new" / "moved"))
        assert (tmp_path / "new" / "moved" / "a.txt").read_text() == "hi"

    @pytest.mark.asyncio
    async def test_async_cross_device(self, src_tree, tmp_path, cross_device):
        await move_async(str(src_tree), str(tmp_path / "moved"))
        assert (tmp_path / "moved" / "sub" / "b.txt").read_text() == "bye"
        assert not src_tree.exists()


class TestRename:
    def test_rename(self, src_tree):
        rename_sync(str(src_tree / "a.txt"), "c.txt")
        assert (src_tree / "c.txt").read_text() == "hi"
        assert not (src_tree / "a.txt").exists()

    def test_separator_rejected(self, src_tree):
        with pytest.raises(ValueError):
            rename_sync(str(src_tree / "a.txt"), "sub/c.txt")
        assert (src_tree / "a.txt").exists()

    @pytest.mark.asyncio
    async def test_async(self, src_tree):
        await rename_async(str(src_tree / "sub"), "other")
        assert (src_tree / "other" / "b.txt").read_text() == "bye"
