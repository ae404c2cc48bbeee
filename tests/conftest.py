"""Shared fixtures for fsjet tests."""

import errno
import os
import shutil

import pytest
import send2trash
from click.testing import CliRunner

from fsjet import FS


@pytest.fixture
def fs(tmp_path):
    """An FS context rooted at the test's temporary directory."""
    return FS(tmp_path)


@pytest.fixture
def src_tree(tmp_path):
    """src/a.txt ("hi"), src/sub/b.txt ("bye") and src/link -> a.txt."""
    src = tmp_path / "src"
    (src / "sub").mkdir(parents=True)
    (src / "a.txt").write_text("hi")
    (src / "sub" / "b.txt").write_text("bye")
    os.symlink("a.txt", src / "link")
    return src


@pytest.fixture
def five_files(tmp_path):
    """A directory holding f1.txt .. f5.txt."""
    src = tmp_path / "five"
    src.mkdir()
    for i in range(1, 6):
        (src / f"f{i}.txt").write_text(str(i))
    return src


@pytest.fixture
def deny_unlink(monkeypatch):
    """Make ``os.unlink`` fail with EACCES for files with the given base names."""
    def install(*names):
        real_unlink = os.unlink

        def unlink(path, *args, **kwargs):
            if os.path.basename(os.fspath(path)) in names:
                raise PermissionError(errno.EACCES, "Permission denied", os.fspath(path))
            return real_unlink(path, *args, **kwargs)

        monkeypatch.setattr(os, "unlink", unlink)
    return install


@pytest.fixture
def trash(tmp_path, monkeypatch):
    """Replace ``send2trash.send2trash``; return the list of trashed paths.

    Trashed entries are moved into ``tmp_path / "trash"`` so they leave
    their original location.
    """
    bin_dir = tmp_path / "trash"
    bin_dir.mkdir()
    trashed = []

    def fake_send2trash(path):
        trashed.append(path)
        shutil.move(path, bin_dir / f"{len(trashed)}-{os.path.basename(path)}")

    monkeypatch.setattr(send2trash, "send2trash", fake_send2trash)
    return trashed


# ---------------------------------------------------------------------------
# CLI fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()
