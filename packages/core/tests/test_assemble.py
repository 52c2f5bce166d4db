"""Tests for rendering comparison records as diff and commit-log text."""

from upreview_core.diff.assemble import build_changes_text, build_commits_text
from upreview_core.diff.line_index import build_line_index
from upreview_core.models import ChangeRecord, CommitRecord


def test_modified_file_header():
    change = ChangeRecord(old_path="file.go", new_path="file.go", diff_body="@@ -1,1 +1,1 @@\n-hello\n+world")
    assert build_changes_text([change]) == "--- a/file.go\n+++ b/file.go\n@@ -1,1 +1,1 @@\n-hello\n+world\n\n"


def test_new_file_header():
    change = ChangeRecord(old_path="", new_path="new_file.go", diff_body="@@ -0,0 +1,1 @@\n+new file", is_new=True)
    assert build_changes_text([change]).startswith("--- /dev/null\n+++ b/new_file.go\n")


def test_deleted_file_header():
    change = ChangeRecord(
        old_path="deleted_file.go", new_path="", diff_body="@@ -1,1 +0,0 @@\n-deleted file", is_deleted=True
    )
    assert build_changes_text([change]).startswith("--- a/deleted_file.go\n+++ /dev/null\n")


def test_renamed_file_matches_modification_shape():
    body = "@@ -1,1 +1,1 @@\n-old\n+new"
    renamed = ChangeRecord(old_path="old_name.go", new_path="new_name.go", diff_body=body, is_renamed=True)
    modified = ChangeRecord(old_path="old_name.go", new_path="new_name.go", diff_body=body)
    expected = "--- a/old_name.go\n+++ b/new_name.go\n@@ -1,1 +1,1 @@\n-old\n+new\n\n"
    assert build_changes_text([renamed]) == expected
    assert build_changes_text([modified]) == expected


def test_order_is_preserved():
    changes = [
        ChangeRecord(old_path="z.py", new_path="z.py", diff_body="@@ -1 +1 @@\n+z"),
        ChangeRecord(old_path="a.py", new_path="a.py", diff_body="@@ -1 +1 @@\n+a"),
    ]
    text = build_changes_text(changes)
    assert text.index("z.py") < text.index("a.py")


def test_empty_changes():
    assert build_changes_text([]) == ""


def test_assembled_text_feeds_the_line_index():
    changes = [
        ChangeRecord(old_path="a.py", new_path="a.py", diff_body="@@ -1,2 +1,3 @@\n x\n+y\n z"),
        ChangeRecord(old_path="", new_path="b.py", diff_body="@@ -0,0 +1,2 @@\n+1\n+2", is_new=True),
        ChangeRecord(old_path="c.py", new_path="", diff_body="@@ -1 +0,0 @@\n-gone", is_deleted=True),
    ]
    assert build_line_index(build_changes_text(changes)) == {"a.py": {2}, "b.py": {1, 2}}


def test_commits_text():
    commits = [CommitRecord(id="123", message="feat: new feature"), CommitRecord(id="456", message="fix: bug fix")]
    assert build_commits_text(commits) == "Commit 123:\nfeat: new feature\n\nCommit 456:\nfix: bug fix\n\n"


def test_empty_commits():
    assert build_commits_text([]) == ""
