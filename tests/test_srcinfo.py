"""Tests for .SRCINFO parsing and printing."""

import pytest

from aurkit.modules.srcinfo import (
    EMPTY_OVERRIDE,
    ArchString,
    SrcinfoError,
    parse,
    parse_file,
)
from aurkit.modules.version import ParseError

MINIMAL = "pkgbase = mini\npkgver = 1.0\npkgrel = 1\narch = any\npkgname = mini\n"


class TestParse:
    def test_base_fields(self, srcinfo_text):
        si = parse(srcinfo_text)
        assert si.pkgbase == "demo"
        assert si.base.pkgver == "1.2.3"
        assert si.base.pkgrel == "2"
        assert si.base.epoch == "1"
        assert si.package.arch == ["x86_64", "aarch64"]
        assert si.package.pkgdesc == "A demo package"
        assert si.base.makedepends == [ArchString("", "cmake")]
        assert si.base.source == [ArchString("", "demo-1.2.3.tar.gz"), ArchString("aarch64", "demo-arm.patch")]
        assert si.pkgnames() == ["demo", "demo-docs"]

    def test_arch_specific_values(self, srcinfo_text):
        si = parse(srcinfo_text)
        assert si.package.depends == [ArchString("", "glibc"), ArchString("x86_64", "lib32-glibc")]

    def test_explicit_empty_value(self, srcinfo_text):
        si = parse(srcinfo_text)
        docs = si.packages[1]
        assert docs.depends == [ArchString("", EMPTY_OVERRIDE)]

    def test_version(self, srcinfo_text):
        assert str(parse(srcinfo_text).version()) == "1:1.2.3-2"

    def test_unknown_keys_and_comments_ignored(self):
        si = parse("# comment\n" + MINIMAL + "frobnicate = yes\n")
        assert si.pkgbase == "mini"

    def test_parse_file(self, tmp_path, srcinfo_text):
        path = tmp_path / ".SRCINFO"
        path.write_text(srcinfo_text)
        assert parse_file(str(path)).pkgbase == "demo"

    def test_parse_file_missing(self, tmp_path):
        with pytest.raises(SrcinfoError):
            parse_file(str(tmp_path / "nope"))


class TestSplitPackages:
    def test_inherits_and_overrides(self, srcinfo_text):
        demo = parse(srcinfo_text).split_package("demo")
        assert demo.pkgdesc == "A demo package"
        assert demo.depends == [ArchString("", "zlib"), ArchString("x86_64", "lib32-glibc")]
        assert demo.provides == [ArchString("", "libdemo.so=1-64")]
        assert demo.license == ["MIT"]

    def test_empty_override_clears_inherited(self, srcinfo_text):
        docs = parse(srcinfo_text).split_package("demo-docs")
        assert docs.pkgdesc == "Documentation for demo"
        assert docs.depends == [ArchString("x86_64", "lib32-glibc")]

    def test_unknown_package(self, srcinfo_text):
        with pytest.raises(KeyError):
            parse(srcinfo_text).split_package("nope")

    def test_split_packages(self, srcinfo_text):
        assert [p.pkgname for p in parse(srcinfo_text).split_packages()] == ["demo", "demo-docs"]


class TestErrors:
    @pytest.mark.parametrize("field", ["pkgver", "pkgrel", "arch"])
    def test_missing_required_field(self, field):
        text = "\n".join(line for line in MINIMAL.splitlines() if not line.startswith(field))
        with pytest.raises(SrcinfoError) as exc:
            parse(text)
        assert field in str(exc.value)

    def test_missing_pkgname(self):
        with pytest.raises(SrcinfoError, match="pkgname"):
            parse("pkgbase = x\npkgver = 1\npkgrel = 1\narch = any\n")

    def test_empty_pkgver_counts_as_missing(self):
        with pytest.raises(SrcinfoError, match="pkgver"):
            parse(MINIMAL.replace("pkgver = 1.0", "pkgver ="))

    def test_unsupported_arch_suffix(self):
        text = "pkgbase = x\npkgver = 1\npkgrel = 1\narch = x86_64\ndepends_i686 = foo\npkgname = x\n"
        with pytest.raises(SrcinfoError) as exc:
            parse(text)
        assert exc.value.lineno == 5
        assert exc.value.line == "depends_i686 = foo"
        assert "unsupported arch" in str(exc.value)
        assert str(exc.value).startswith("Line 5: ")

    def test_any_suffix_rejected(self):
        with pytest.raises(SrcinfoError, match="not allowed"):
            parse("pkgbase = x\narch = any\ndepends_any = foo\n")

    def test_base_only_key_after_pkgname(self):
        with pytest.raises(SrcinfoError, match="after pkgname"):
            parse(MINIMAL + "source = foo.tar.gz\n")

    def test_key_before_pkgbase(self):
        with pytest.raises(SrcinfoError) as exc:
            parse("pkgver = 1\n" + MINIMAL)
        assert exc.value.lineno == 1

    def test_pkgname_before_pkgbase(self):
        with pytest.raises(SrcinfoError, match="before pkgbase"):
            parse("pkgname = x\n")

    def test_duplicate_pkgname(self):
        with pytest.raises(SrcinfoError, match="more than once"):
            parse(MINIMAL + "pkgname = mini\n")

    def test_line_without_equals(self):
        with pytest.raises(SrcinfoError, match="does not contain ="):
            parse("pkgbase = x\nbroken line\n")

    def test_is_parse_error(self):
        with pytest.raises(ParseError):
            parse("")


class TestPrint:
    def test_minimal(self):
        assert parse(MINIMAL).to_text() == (
            "pkgbase = mini\n"
            "\tpkgver = 1.0\n"
            "\tpkgrel = 1\n"
            "\tarch = any\n"
            "\n"
            "pkgname = mini\n"
        )

    def test_field_order(self, srcinfo_text):
        lines = parse(srcinfo_text).to_text().splitlines()
        keys = [line.strip().split(" = ")[0] for line in lines[:17]]
        assert keys == [
            "pkgbase", "pkgdesc", "pkgver", "pkgrel", "epoch", "url", "arch", "arch",
            "license", "makedepends", "depends", "depends_x86_64", "source",
            "source_aarch64", "sha256sums", "sha256sums_aarch64", "",
        ]

    def test_empty_override_printed(self, srcinfo_text):
        assert "\tdepends = \n" in parse(srcinfo_text).to_text()

    def test_round_trip(self, srcinfo_text):
        si = parse(srcinfo_text)
        again = parse(si.to_text())
        assert again == si
        assert again.to_text() == si.to_text()
