"""Tests for tree nodes — files, directories, permissions and node records.

A node is either a file holding bytes or a directory holding an ordered
mapping of child names to nodes.  Directories own their children, so a
deep copy must share no storage with the original.
"""

import pytest

from py_vfs.fs.errors import InvalidModeError, SnapshotError
from py_vfs.fs.node import DEFAULT_PERMS, PERM_READ, PERM_WRITE, Node, NodeKind, format_perms, parse_mode

STAMP = 1_700_000_000_000


class TestNodeCreation:
    """Verify node factories and basic properties."""

    def test_file_factory(self) -> None:
        """A new file is a FILE with the given content."""
        node = Node.file("a.txt", b"abc")
        assert node.kind is NodeKind.FILE
        assert node.data == b"abc"
        assert not node.is_dir

    def test_directory_factory(self) -> None:
        """A new directory is an empty DIRECTORY."""
        node = Node.directory("docs")
        assert node.kind is NodeKind.DIRECTORY
        assert node.is_dir
        assert node.children == {}

    def test_timestamps_start_equal(self) -> None:
        """ctime and mtime are stamped together at creation."""
        node = Node.file("a.txt")
        assert node.ctime == node.mtime
        assert node.ctime > 0

    def test_default_perms_are_rwx(self) -> None:
        """New nodes start with all three permission bits set."""
        assert Node.file("a.txt").perms == DEFAULT_PERMS
        assert format_perms(DEFAULT_PERMS) == "rwx"

    def test_kind_is_immutable(self) -> None:
        """Changing a node's kind after creation is refused."""
        node = Node.file("a.txt")
        with pytest.raises(AttributeError, match="kind"):
            node.kind = NodeKind.DIRECTORY


class TestNodeSize:
    """Verify size semantics for files and directories."""

    def test_file_size_is_byte_length(self) -> None:
        """A file's size counts bytes."""
        assert Node.file("a", "héllo".encode()).size == len("héllo".encode())

    def test_directory_size_is_entry_count(self) -> None:
        """A directory's size counts direct children only."""
        parent = Node.directory("p")
        child = Node.directory("c")
        child.children["x"] = Node.file("x")
        parent.children["c"] = child
        parent.children["f"] = Node.file("f", b"12345")
        assert parent.size == 2


class TestDeepCopy:
    """Verify recursive copies share no storage."""

    def test_copy_preserves_metadata(self) -> None:
        """Name, timestamps, perms and content carry over."""
        node = Node(name="a", kind=NodeKind.FILE, data=b"x", ctime=STAMP, mtime=STAMP + 1, perms=PERM_READ)
        copy = node.deep_copy()
        assert copy == node
        assert copy is not node

    def test_copy_can_be_renamed(self) -> None:
        """The top-level copy can take a new name."""
        assert Node.file("a").deep_copy(name="b").name == "b"

    def test_copy_is_independent(self) -> None:
        """Changing the original's subtree leaves the copy untouched."""
        root = Node.directory("d")
        root.children["f"] = Node.file("f", b"old")
        copy = root.deep_copy()
        root.children["f"].data = b"new"
        root.children["g"] = Node.file("g")
        assert copy.children["f"].data == b"old"
        assert "g" not in copy.children
        assert copy.children["f"] is not root.children["f"]


class TestPermissions:
    """Verify parsing and rendering of the rwx triplet."""

    @pytest.mark.parametrize(
        ("mode", "bits"),
        [("rwx", 0b111), ("r-x", 0b101), ("rw-", 0b110), ("---", 0), ("--x", 0b001)],
    )
    def test_parse_valid_modes(self, mode: str, bits: int) -> None:
        """Each position is either its letter or '-'."""
        assert parse_mode(mode) == bits
        assert format_perms(bits) == mode

    @pytest.mark.parametrize("mode", ["rw", "rwxr", "", "xwr", "rwz"])
    def test_parse_invalid_modes(self, mode: str) -> None:
        """Wrong lengths and unknown characters are rejected."""
        with pytest.raises(InvalidModeError):
            parse_mode(mode)


class TestNodeRecords:
    """Verify node serialization and validation."""

    def test_file_record_encodes_binary(self) -> None:
        """Binary data survives the base64 encoding."""
        node = Node.file("bin", bytes(range(256)))
        assert Node.from_dict(node.to_dict()).data == bytes(range(256))

    def test_children_keep_order(self) -> None:
        """Children are rebuilt in their original insertion order."""
        root = Node.directory("/")
        for name in ("zeta", "alpha", "mid"):
            root.children[name] = Node.file(name)
        rebuilt = Node.from_dict(root.to_dict())
        assert list(rebuilt.children) == ["zeta", "alpha", "mid"]

    def test_duplicate_child_names_rejected(self) -> None:
        """Two children with the same name make the record invalid."""
        record = Node.directory("/").to_dict()
        child = Node.file("a").to_dict()
        record["children"] = [child, child]
        with pytest.raises(SnapshotError, match="Duplicate"):
            Node.from_dict(record)

    def test_missing_field_rejected(self) -> None:
        """A record without a required key is invalid."""
        record = Node.file("a").to_dict()
        del record["mtime"]
        with pytest.raises(SnapshotError, match="mtime"):
            Node.from_dict(record)

    def test_bool_is_not_an_int_field(self) -> None:
        """Booleans are not accepted where integers are required."""
        record = Node.file("a").to_dict()
        record["perms"] = True
        with pytest.raises(SnapshotError, match="perms"):
            Node.from_dict(record)

    def test_perms_out_of_range_rejected(self) -> None:
        """Permission bits beyond rwx are invalid."""
        record = Node.file("a").to_dict()
        record["perms"] = 8
        with pytest.raises(SnapshotError, match="out of range"):
            Node.from_dict(record)

    def test_bad_base64_rejected(self) -> None:
        """Corrupt file content is reported, not silently decoded."""
        record = Node.file("a").to_dict()
        record["data"] = "not base64!"
        with pytest.raises(SnapshotError, match="Corrupt content"):
            Node.from_dict(record)

    def test_unknown_kind_rejected(self) -> None:
        """Only file and directory kinds exist."""
        record = Node.file("a").to_dict()
        record["kind"] = "symlink"
        with pytest.raises(SnapshotError, match="kind"):
            Node.from_dict(record)

    def test_slash_in_child_name_rejected(self) -> None:
        """A child name containing '/' could never be resolved."""
        record = Node.directory("/").to_dict()
        record["children"] = [Node.file("a/b").to_dict()]
        with pytest.raises(SnapshotError, match="Invalid entry name"):
            Node.from_dict(record)

    def test_non_object_record_rejected(self) -> None:
        """A record must be a JSON object."""
        with pytest.raises(SnapshotError):
            Node.from_dict(["not", "a", "node"])

    def test_perm_constants_combine(self) -> None:
        """The permission constants are distinct bits."""
        assert format_perms(PERM_READ | PERM_WRITE) == "rw-"
