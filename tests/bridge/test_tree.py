"""Tests for reading facts from a kernel source tree."""

from autokernel.bridge.tree import read_kernel_version

MAKEFILE = """\
# SPDX-License-Identifier: GPL-2.0
VERSION = 6
PATCHLEVEL = 6
SUBLEVEL = 1
EXTRAVERSION = -rc2
NAME = Hurr durr I'ma ninja sloth
"""


class TestReadKernelVersion:
    def test_full_release(self, tmp_path):
        (tmp_path / "Makefile").write_text(MAKEFILE)
        assert read_kernel_version(tmp_path) == "6.6.1-rc2"

    def test_empty_extraversion(self, tmp_path):
        (tmp_path / "Makefile").write_text(MAKEFILE.replace("-rc2", ""))
        assert read_kernel_version(tmp_path) == "6.6.1"

    def test_first_definition_wins(self, tmp_path):
        (tmp_path / "Makefile").write_text(MAKEFILE + "VERSION = 9\n")
        assert read_kernel_version(tmp_path).startswith("6.")

    def test_missing_makefile(self, tmp_path):
        assert read_kernel_version(tmp_path) is None

    def test_makefile_without_version(self, tmp_path):
        (tmp_path / "Makefile").write_text("all:\n\ttrue\n")
        assert read_kernel_version(tmp_path) is None
