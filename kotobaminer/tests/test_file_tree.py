import os
from pathlib import Path

import pytest


@pytest.fixture
def corpus(write_corpus):
    return write_corpus(
        {
            "b_show/02.srt": "1\n00:00:01,000 --> 00:00:02,000\n猫\n",
            "b_show/01.srt": "1\n00:00:01,000 --> 00:00:02,000\n犬\n",
            "a_books/novel.txt": "猫。",
            "a_books/notes.md": "skip me",
            "empty_dir/readme.pdf": b"%PDF",
            "top.ass": "",
        }
    )


class TestTreeNodeId:
    def test_identity_is_kind_and_key(self):
        from kotobaminer.analysis.file_tree import TreeNodeId

        assert TreeNodeId.file("a/b.txt") == TreeNodeId("file", "a/b.txt")
        assert TreeNodeId.file("a") != TreeNodeId.directory("a")
        assert len({TreeNodeId.file("x"), TreeNodeId.file("x")}) == 1


class TestFileTreeBuilder:
    def test_discovers_supported_files_sorted(self, corpus):
        from kotobaminer.analysis.file_tree import FileTreeBuilder

        tree = FileTreeBuilder().build(corpus)
        assert [child.name for child in tree.root.children] == ["a_books", "b_show", "top.ass"]
        assert [p.relative_to(corpus).as_posix() for p in tree.files] == [
            "a_books/novel.txt",
            "b_show/01.srt",
            "b_show/02.srt",
            "top.ass",
        ]
        assert tree.skipped == []

    def test_prunes_directories_without_sources(self, corpus):
        from kotobaminer.analysis.file_tree import FileTreeBuilder, TreeNodeId

        tree = FileTreeBuilder().build(corpus)
        assert tree.root.find(TreeNodeId.directory("empty_dir")) is None

    def test_sizes(self, corpus):
        from kotobaminer.analysis.file_tree import FileTreeBuilder

        sizes = FileTreeBuilder().build(corpus).sizes()
        assert sizes[corpus / "a_books" / "novel.txt"] == len("猫。".encode("utf-8"))
        assert sizes[corpus / "top.ass"] == 0

    def test_empty_root(self, tmp_path):
        from kotobaminer.analysis.file_tree import FileTreeBuilder

        tree = FileTreeBuilder().build(tmp_path)
        assert tree.root.children == []
        assert tree.files == []

    def test_missing_root(self, tmp_path):
        from kotobaminer.analysis.file_tree import FileTreeBuilder

        tree = FileTreeBuilder().build(tmp_path / "nope")
        assert tree.root.count_files() == 0

    def test_single_file_root(self, corpus):
        from kotobaminer.analysis.file_tree import FileTreeBuilder

        tree = FileTreeBuilder().build(corpus / "a_books" / "novel.txt")
        assert tree.files == [corpus / "a_books" / "novel.txt"]

    def test_unreadable_directory_is_skipped(self, corpus, monkeypatch):
        from kotobaminer.analysis.file_tree import FileTreeBuilder

        real_scandir = os.scandir
        blocked = corpus / "b_show"

        def scandir(path):
            if Path(path) == blocked:
                raise PermissionError("denied")
            return real_scandir(path)

        monkeypatch.setattr("kotobaminer.analysis.file_tree.os.scandir", scandir)
        tree = FileTreeBuilder().build(corpus)
        assert tree.skipped == [blocked]
        assert [p.name for p in tree.files] == ["novel.txt", "top.ass"]

    def test_custom_extensions(self, corpus):
        from kotobaminer.analysis.file_tree import FileTreeBuilder

        tree = FileTreeBuilder(extensions=frozenset({".TXT"})).build(corpus)
        assert [p.name for p in tree.files] == ["novel.txt"]


class TestFileTreeNode:
    def test_selection_cascades(self, corpus):
        from kotobaminer.analysis.file_tree import FileTreeBuilder, TreeNodeId

        tree = FileTreeBuilder().build(corpus)
        show = tree.root.find(TreeNodeId.directory("b_show"))
        assert show is not None
        assert tree.root.selection_state() == "all"

        show.set_selected(False)
        assert show.selection_state() == "none"
        assert tree.root.selection_state() == "partial"
        assert [p.name for p in tree.root.selected_files()] == ["novel.txt", "top.ass"]

        tree.root.find(TreeNodeId.file("b_show/01.srt")).set_selected(True)
        assert show.selection_state() == "partial"

    def test_annotate_marks_processed(self, corpus):
        from kotobaminer.analysis.base import FileReport
        from kotobaminer.analysis.file_tree import FileTreeBuilder, TreeNodeId

        tree = FileTreeBuilder().build(corpus)
        novel = corpus / "a_books" / "novel.txt"
        tree.annotate({novel: FileReport(path=novel, comprehension=0.25)})

        node = tree.root.find(TreeNodeId.file("a_books/novel.txt"))
        assert node.processed
        assert node.comprehension == 0.25
        assert tree.root.progress() == pytest.approx(0.25)
        assert tree.root.find(TreeNodeId.directory("a_books")).progress() == 1.0
