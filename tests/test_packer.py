# tests/test_packer.py
import os
import zipfile
from types import SimpleNamespace

import pytest

from downloadsubmissions.services.packer import ARCHIVE_PREFIX, PackingError, ZipPacker


def handle(filename, content):
    return SimpleNamespace(filename=filename, content=content)


class TestZipPacker:
    def test_pack_writes_every_entry(self, tmp_path):
        packer = ZipPacker(temp_dir=str(tmp_path), compression_level=9)
        zip_path = packer.pack({
            "Q1 - Essay/S001 - Ada Lovelace/Attempt1_filesubmission_report.pdf": handle("report.pdf", b"%PDF"),
            "Q1 - Essay/Attempt1_questiontext.txt": handle("questiontext.txt", b"Reflect."),
        })
        assert os.path.dirname(zip_path) == str(tmp_path)
        assert os.path.basename(zip_path).startswith(ARCHIVE_PREFIX)
        with zipfile.ZipFile(zip_path) as archive:
            assert archive.read("Q1 - Essay/Attempt1_questiontext.txt") == b"Reflect."
            assert archive.getinfo("Q1 - Essay/Attempt1_questiontext.txt").compress_type == zipfile.ZIP_DEFLATED
            assert len(archive.namelist()) == 2
        os.remove(zip_path)

    def test_failed_write_removes_the_partial_archive(self, tmp_path):
        packer = ZipPacker(temp_dir=str(tmp_path))
        files = {
            "first.txt": handle("first.txt", b"written"),
            "broken.txt": handle("broken.txt", None),
        }
        with pytest.raises(PackingError):
            packer.pack(files)
        assert [name for name in os.listdir(tmp_path) if name.startswith(ARCHIVE_PREFIX)] == []

    def test_unusable_temp_dir_raises_packing_error(self, tmp_path):
        not_a_dir = tmp_path / "archives"
        not_a_dir.write_text("occupied")
        with pytest.raises(PackingError):
            ZipPacker(temp_dir=str(not_a_dir)).pack({"a.txt": handle("a.txt", b"a")})
