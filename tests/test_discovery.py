"""Tests for application bundle discovery."""

from pathlib import Path
from unittest.mock import patch

from appcull.discovery import discover, find_bundles, is_nested_bundle, read_bundle_id
from appcull.protection import is_protected_bundle


class TestFindBundles:
    def test_finds_top_level_bundles(self, tmp_path, make_bundle):
        foo = make_bundle(tmp_path, "Foo.app")
        bar = make_bundle(tmp_path, "Bar.app")

        results = set(find_bundles(tmp_path))
        assert results == {foo, bar}

    def test_finds_bundles_in_subfolders(self, tmp_path, make_bundle):
        tool = make_bundle(tmp_path / "Utilities", "Tool.app")
        assert tool in set(find_bundles(tmp_path))

    def test_ignores_plain_files(self, tmp_path):
        (tmp_path / "Fake.app").write_text("not a bundle")
        assert list(find_bundles(tmp_path)) == []

    def test_respects_max_depth(self, tmp_path, make_bundle):
        deep = make_bundle(tmp_path / "a" / "b" / "c", "Deep.app")
        assert deep not in set(find_bundles(tmp_path, max_depth=3))
        assert deep in set(find_bundles(tmp_path, max_depth=4))

    def test_does_not_descend_symlinks(self, tmp_path, make_bundle):
        elsewhere = tmp_path / "elsewhere"
        make_bundle(elsewhere, "Hidden.app")
        root = tmp_path / "root"
        root.mkdir()
        (root / "link").symlink_to(elsewhere)

        assert list(find_bundles(root)) == []

    def test_handles_permission_error(self, tmp_path):
        with patch("os.scandir", side_effect=PermissionError("Access denied")):
            assert list(find_bundles(tmp_path)) == []


class TestIsNestedBundle:
    def test_nested_in_contents(self):
        root = Path("/Applications")
        assert is_nested_bundle(root / "Outer.app" / "Contents" / "Inner.app", root)

    def test_direct_child_of_bundle(self):
        root = Path("/Applications")
        assert is_nested_bundle(root / "Outer.app" / "Inner.app", root)

    def test_similar_folder_name_is_not_nested(self):
        root = Path("/Applications")
        assert not is_nested_bundle(root / "Old.apps" / "Target.app", root)

    def test_top_level(self):
        root = Path("/Applications")
        assert not is_nested_bundle(root / "Foo.app", root)

    def test_substring_in_middle_is_not_nested(self):
        root = Path("/Applications")
        assert not is_nested_bundle(root / "my.application" / "Foo.app", root)


class TestReadBundleId:
    def test_reads_identifier(self, tmp_path, make_bundle):
        bundle = make_bundle(tmp_path, "Foo.app", bundle_id="com.example.foo")
        assert read_bundle_id(bundle) == "com.example.foo"

    def test_missing_plist(self, tmp_path):
        bundle = tmp_path / "Foo.app"
        bundle.mkdir()
        assert read_bundle_id(bundle) == "unknown"

    def test_missing_key(self, tmp_path, make_bundle):
        bundle = make_bundle(tmp_path, "Foo.app", bundle_id=None)
        assert read_bundle_id(bundle) == "unknown"

    def test_corrupt_plist(self, tmp_path):
        bundle = tmp_path / "Foo.app"
        (bundle / "Contents").mkdir(parents=True)
        (bundle / "Contents" / "Info.plist").write_bytes(b"\x00garbage")
        assert read_bundle_id(bundle) == "unknown"

    def test_sanitizes_identifier(self, tmp_path, make_bundle):
        bundle = make_bundle(tmp_path, "Foo.app", bundle_id="com.example|foo\n")
        assert read_bundle_id(bundle) == "com.example-foo"


class TestDiscover:
    def test_yields_candidates(self, tmp_path, make_bundle):
        make_bundle(tmp_path, "Foo.app", bundle_id="com.example.foo")

        candidates = list(discover([tmp_path]))
        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.path == str(tmp_path / "Foo.app")
        assert candidate.cheap_name == "Foo"
        assert candidate.bundle_id == "com.example.foo"

    def test_excludes_nested_bundle(self, tmp_path, make_bundle):
        outer = make_bundle(tmp_path, "Outer.app", bundle_id="com.example.outer")
        make_bundle(outer / "Contents", "Inner.app", bundle_id="com.example.inner")

        names = [c.cheap_name for c in discover([tmp_path])]
        assert names == ["Outer"]

    def test_includes_bundle_under_similar_folder(self, tmp_path, make_bundle):
        make_bundle(tmp_path / "Old.apps", "Target.app", bundle_id="com.example.target")

        names = [c.cheap_name for c in discover([tmp_path])]
        assert names == ["Target"]

    def test_filters_protected(self, tmp_path, make_bundle):
        make_bundle(tmp_path, "Safari.app", bundle_id="com.apple.Safari")
        make_bundle(tmp_path, "Foo.app", bundle_id="com.example.foo")

        names = [c.cheap_name for c in discover([tmp_path], is_protected=is_protected_bundle)]
        assert names == ["Foo"]

    def test_unknown_bundle_id_kept(self, tmp_path, make_bundle):
        make_bundle(tmp_path, "Mystery.app", bundle_id=None)

        candidates = list(discover([tmp_path], is_protected=is_protected_bundle))
        assert [c.bundle_id for c in candidates] == ["unknown"]

    def test_skips_missing_roots(self, tmp_path, make_bundle):
        make_bundle(tmp_path, "Foo.app")
        candidates = list(discover([tmp_path / "missing", tmp_path]))
        assert len(candidates) == 1

    def test_skips_bundle_removed_mid_scan(self, tmp_path, make_bundle):
        gone = tmp_path / "Gone.app"
        kept = make_bundle(tmp_path, "Kept.app")

        with patch("appcull.discovery.find_bundles", return_value=iter([gone, kept])):
            names = [c.cheap_name for c in discover([tmp_path])]
        assert names == ["Kept"]

    def test_skips_paths_with_delimiter(self, tmp_path, make_bundle):
        make_bundle(tmp_path, "Odd|Name.app")
        make_bundle(tmp_path, "Fine.app")

        names = [c.cheap_name for c in discover([tmp_path])]
        assert names == ["Fine"]

    def test_is_lazy(self, tmp_path, make_bundle):
        make_bundle(tmp_path, "Foo.app")
        gen = discover([tmp_path])
        assert next(gen).cheap_name == "Foo"
        assert list(gen) == []
