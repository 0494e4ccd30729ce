from repohealth.sources import REPOSITORY, Found, LocalSource, NotFound, TransportError, branch_protection_path

from conftest import write_tree


def test_local_file_and_directory(tmp_path):
    root = write_tree(tmp_path, {"README.md": "# hi\n", "docs/b.md": "", "docs/a.md": ""})
    source = LocalSource(root)
    assert source.fetch("README.md") == Found("# hi\n")
    assert source.fetch("docs") == Found(["a.md", "b.md"])
    assert source.fetch("/docs/") == Found(["a.md", "b.md"])


def test_local_absent_and_reserved(tmp_path):
    source = LocalSource(tmp_path)
    assert source.fetch("SECURITY.md") == NotFound("SECURITY.md")
    assert source.fetch(REPOSITORY) == NotFound(REPOSITORY)
    assert isinstance(source.fetch(branch_protection_path("main")), NotFound)


def test_missing_root_is_a_transport_error(tmp_path):
    result = LocalSource(tmp_path / "gone").fetch("README.md")
    assert isinstance(result, TransportError)
    assert "not a readable directory" in result.reason


def test_undecodable_bytes_are_replaced(tmp_path):
    (tmp_path / "LICENSE").write_bytes(b"MIT \xff License")
    result = LocalSource(tmp_path).fetch("LICENSE")
    assert isinstance(result, Found)
    assert result.content.startswith("MIT ")
