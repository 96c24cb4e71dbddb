import pytest

from migsource.migration import DuplicateMigrationError
from migsource.vfs import VFS, MapFileSystem, with_instance

FILES = {
    "1_foobar.up.sql": "1 up",
    "1_foobar.down.sql": "1 down",
    "3_foobar.up.sql": "3 up",
    "4_foobar.up.sql": "4 up",
    "4_foobar.down.sql": "4 down",
    "5_foobar.down.sql": "5 down",
    "7_foobar.up.sql": "7 up",
    "7_foobar.down.sql": "7 down",
}

STEPS = {
    "prev": {0: None, 1: None, 2: None, 3: 1, 4: 3, 5: 4, 6: None, 7: 5, 8: None, 9: None},
    "next": {0: None, 1: 3, 2: None, 3: 4, 4: 5, 5: 7, 6: None, 7: None, 8: None, 9: None},
}
AVAILABLE = {"up": {1, 3, 4, 7}, "down": {1, 4, 5, 7}}


def check_suite(d):
    assert d.first() == 1
    for method, table in STEPS.items():
        for version, expected in table.items():
            if expected is None:
                with pytest.raises(FileNotFoundError):
                    getattr(d, method)(version)
            else:
                assert getattr(d, method)(version) == expected
    for word, versions in AVAILABLE.items():
        read = getattr(d, f"read_{word}")
        for version in range(9):
            if version not in versions:
                with pytest.raises(FileNotFoundError):
                    read(version)
                continue
            body, identifier = read(version)
            with body:
                assert body.read() == f"{version} {word}".encode()
            assert identifier == "foobar"


@pytest.mark.parametrize("prefix, search_path", [("", ""), ("sql/", "/sql")])
def test_vfs_driver_suite(prefix, search_path):
    fs = MapFileSystem({prefix + name: body for name, body in FILES.items()})
    check_suite(with_instance(fs, search_path))


def test_search_path_defaults_to_root():
    d = with_instance(MapFileSystem(FILES), "")
    assert d.path == "/"


def test_open_raises():
    with pytest.raises(RuntimeError):
        VFS().open("")


def test_root_listing_implies_directories():
    fs = MapFileSystem({"a/1_x.up.sql": "x", "b.txt": ""})
    root = fs.open("/")
    entries = {(e.name, e.is_dir()) for e in root.readdir()}
    assert entries == {("a", True), ("b.txt", False)}


def test_closed_directory_refuses_listing():
    root = MapFileSystem(FILES).open("/")
    root.close()
    assert root.closed is True
    with pytest.raises(ValueError):
        root.readdir()


def test_open_file_reads_content():
    fs = MapFileSystem({"b.txt": "hello"})
    with fs.open("/b.txt") as f:
        assert f.read() == b"hello"


@pytest.mark.parametrize(
    "search_path, expected",
    [("/nope", FileNotFoundError), ("/missing", FileNotFoundError), ("/1_foobar.up.sql", NotADirectoryError)],
)
def test_bad_search_path(search_path, expected):
    with pytest.raises(expected):
        with_instance(MapFileSystem(FILES), search_path)


def test_duplicate_migrations_rejected():
    fs = MapFileSystem({"1_foo.up.sql": "", "1_bar.up.sql": ""})
    with pytest.raises(DuplicateMigrationError):
        with_instance(fs, "")


def test_empty_fs_has_no_first():
    d = with_instance(MapFileSystem({}), "")
    with pytest.raises(FileNotFoundError):
        d.first()