"""Tests for the tree walk: ordering, fan-out pruning and error leaves."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from codeextractor import walker
from codeextractor.rules import RuleSet
from codeextractor.walker import ReportBuffers, ScanLimits, TreeWalker


def _write(path: Path, text: str = "x\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


class TreeWalkerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_preorder_tree_with_directories_first(self) -> None:
        _write(self.root / "setup.cfg", "[metadata]\n")
        _write(self.root / "src" / "main.py", "print(1)\n")
        _write(self.root / "src" / "pkg" / "util.py", "pass\n")
        _write(self.root / "docs" / "Readme.md", "# hi\n")
        _write(self.root / "docs" / "api.md", "api\n")

        buffers = TreeWalker(self.root, RuleSet()).walk()

        self.assertEqual(
            buffers.tree_lines,
            [
                "/",
                "├── docs/",
                "│   ├── api.md",
                "│   └── Readme.md",
                "├── src/",
                "│   ├── pkg/",
                "│   │   └── util.py",
                "│   └── main.py",
                "└── setup.cfg",
            ],
        )
        self.assertEqual(
            [rel for rel, _ in buffers.content_sections],
            ["docs/api.md", "docs/Readme.md", "src/pkg/util.py", "src/main.py", "setup.cfg"],
        )
        self.assertEqual(dict(buffers.content_sections)["src/main.py"], "print(1)\n")

    def test_excluded_entries_are_not_visited(self) -> None:
        _write(self.root / "app.py")
        _write(self.root / "debug.log")
        _write(self.root / "vendor" / "lib.py")

        buffers = TreeWalker(self.root, RuleSet(["*.log", "vendor/"])).walk()

        self.assertEqual(buffers.tree_lines, ["/", "└── app.py"])
        self.assertEqual([rel for rel, _ in buffers.content_sections], ["app.py"])

    def test_force_included_file_inside_excluded_directory(self) -> None:
        _write(self.root / "node_modules" / "pkg" / "config.json", "{}\n")
        _write(self.root / "node_modules" / "pkg" / "index.js")
        _write(self.root / "node_modules" / "other" / "index.js")

        rules = RuleSet(["node_modules"], ["node_modules/pkg/config.json"])
        buffers = TreeWalker(self.root, rules).walk()

        self.assertEqual(
            buffers.tree_lines,
            [
                "/",
                "└── node_modules/",
                "    └── pkg/",
                "        └── config.json",
            ],
        )
        self.assertEqual(buffers.content_sections, [("node_modules/pkg/config.json", "{}\n")])

    def test_large_directory_is_pruned(self) -> None:
        for i in range(101):
            _write(self.root / "many" / f"f{i:03d}.txt")

        buffers = TreeWalker(self.root, RuleSet()).walk()

        self.assertEqual(
            buffers.tree_lines,
            [
                "/",
                "└── many/",
                "    ├── f000.txt",
                "    ├── f001.txt",
                "    ├── f002.txt",
                "    └── ... (101 total, 98 omitted)",
            ],
        )
        self.assertEqual(len(buffers.content_sections), 3)

    def test_directory_at_threshold_is_not_pruned(self) -> None:
        for i in range(100):
            _write(self.root / f"f{i:03d}.txt")

        buffers = TreeWalker(self.root, RuleSet()).walk()

        self.assertEqual(len(buffers.tree_lines), 101)
        self.assertEqual(buffers.tree_lines[-1], "└── f099.txt")

    def test_elision_marker_follows_pruned_subtree(self) -> None:
        _write(self.root / "a" / "inner.txt")
        _write(self.root / "b.txt")
        _write(self.root / "c.txt")

        limits = ScanLimits(max_dir_items=2, keep_dir_items=1)
        buffers = TreeWalker(self.root, RuleSet(), limits).walk()

        self.assertEqual(
            buffers.tree_lines,
            [
                "/",
                "├── a/",
                "│   └── inner.txt",
                "└── ... (3 total, 2 omitted)",
            ],
        )

    def test_unreadable_directory_becomes_inline_leaf(self) -> None:
        _write(self.root / "locked" / "secret.txt")
        _write(self.root / "open" / "ok.txt")
        real_list_entries = walker.list_entries

        def list_entries(directory: Path, rel_dir: str):
            if rel_dir == "locked":
                raise PermissionError(13, "Permission denied")
            return real_list_entries(directory, rel_dir)

        with mock.patch.object(walker, "list_entries", side_effect=list_entries):
            tree = TreeWalker(self.root, RuleSet())
            buffers = tree.walk()

        self.assertEqual(
            buffers.tree_lines,
            [
                "/",
                "├── locked/",
                "│   └── [read failed: Permission denied]",
                "└── open/",
                "    └── ok.txt",
            ],
        )
        self.assertEqual(tree.stats.unreadable_dirs, 1)

    def test_binary_and_empty_files_have_no_content_section(self) -> None:
        (self.root / "blob.bin").write_bytes(b"\x00\x01\x02")
        (self.root / "empty.txt").write_bytes(b"")
        _write(self.root / "real.txt", "data\n")

        tree = TreeWalker(self.root, RuleSet())
        buffers = tree.walk()

        self.assertEqual(buffers.tree_lines, ["/", "├── blob.bin", "├── empty.txt", "└── real.txt"])
        self.assertEqual([rel for rel, _ in buffers.content_sections], ["real.txt"])
        self.assertEqual(tree.stats.binary, 1)
        self.assertEqual(tree.stats.files, 2)

    def test_media_is_cataloged_per_directory(self) -> None:
        (self.root / "assets").mkdir()
        (self.root / "assets" / "song.mp3").write_bytes(b"\x00" * 64)
        (self.root / "assets" / "ignored.mp4").write_bytes(b"\x00" * 64)
        (self.root / "cover.png").write_bytes(b"\x00" * 8)

        buffers = TreeWalker(self.root, RuleSet(["ignored.mp4"])).walk()

        sections = buffers.media_sections
        self.assertEqual(len(sections), 2)
        self.assertTrue(sections[0].startswith("### /\n"))
        self.assertIn("[Image] cover.png - 8 B (dimensions: N/A)", sections[0])
        self.assertTrue(sections[1].startswith("### assets\n"))
        self.assertIn("[Audio] song.mp3", sections[1])
        self.assertNotIn("ignored.mp4", sections[1])

    def test_oversized_nested_json_does_not_abort_walk(self) -> None:
        (self.root / "deep.json").write_bytes(b"[" * 60000 + b"]" * 60000)
        _write(self.root / "later.txt", "still here\n")
        _write(self.root / "sub" / "inner.txt", "inner\n")

        tree = TreeWalker(self.root, RuleSet())
        buffers = tree.walk()

        sections = dict(buffers.content_sections)
        self.assertEqual(list(sections), ["sub/inner.txt", "deep.json", "later.txt"])
        self.assertIn("bytes omitted", sections["deep.json"])
        self.assertEqual(sections["later.txt"], "still here\n")
        self.assertEqual(tree.stats.shrunk, 1)

    def test_walk_appends_to_given_sink(self) -> None:
        _write(self.root / "one.txt")
        sink = ReportBuffers()
        self.assertIs(TreeWalker(self.root, RuleSet()).walk(sink), sink)
        self.assertEqual(sink.tree_lines, ["/", "└── one.txt"])

    def test_deep_tree_does_not_recurse(self) -> None:
        deep = self.root
        for i in range(300):
            deep = deep / f"d{i}"
        _write(deep / "leaf.txt", "leaf\n")

        buffers = TreeWalker(self.root, RuleSet()).walk()

        self.assertEqual(len(buffers.tree_lines), 302)
        self.assertEqual(buffers.content_sections[0][1], "leaf\n")


if __name__ == "__main__":
    unittest.main()
