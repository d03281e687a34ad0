"""
Tests for the program stores.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from rdf_transform.exceptions import ProgramStoreError, TransformNotFound
from rdf_transform.ldpath import compile_program
from rdf_transform.result import Err
from rdf_transform.store import (
    DEFAULT_PROGRAM_NAMES,
    FileProgramStore,
    MemoryProgramStore,
    is_valid_name,
    load_bundled_programs,
)


class CountingStore(MemoryProgramStore):
    """MemoryProgramStore that counts backend writes."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.writes = 0
        self._count_lock = threading.Lock()

    def _write(self, key, source):
        with self._count_lock:
            self.writes += 1
        super()._write(key, source)


@pytest.fixture(params=["memory", "file"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return MemoryProgramStore()
    return FileProgramStore(tmp_path)


class TestBundledPrograms:

    def test_bundled_programs_compile(self):
        programs = load_bundled_programs()
        assert sorted(programs) == ["default", "deluxe"]
        for source in programs.values():
            assert compile_program(source).field_names

    def test_default_fields(self):
        program = compile_program(load_bundled_programs()["default"])
        assert program.field_names == ["id", "title", "uuid", "hasParent"]


class TestResolve:
    """resolve() bootstraps defaults and rejects unknown names."""

    @pytest.mark.parametrize("name", DEFAULT_PROGRAM_NAMES)
    def test_defaults_are_bootstrapped(self, any_store, name):
        assert not any_store.exists(name)
        assert any_store.resolve(name) == load_bundled_programs()[name]
        assert any_store.exists(name)

    def test_unknown_name(self, any_store):
        with pytest.raises(TransformNotFound) as exc_info:
            any_store.resolve("nope")
        assert exc_info.value.name == "nope"

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b", "../default", "a\\b"])
    def test_invalid_names_are_not_found(self, any_store, name):
        with pytest.raises(TransformNotFound):
            any_store.resolve(name)

    def test_try_resolve(self, any_store):
        assert any_store.try_resolve("default").is_ok()
        outcome = any_store.try_resolve("nope")
        assert isinstance(outcome, Err)
        assert isinstance(outcome.error, TransformNotFound)

    def test_is_valid_name(self):
        assert is_valid_name("default")
        assert not is_valid_name("a/b")


class TestSave:
    """save() uploads programs; bootstrap never overwrites them."""

    def test_save_and_resolve(self, any_store):
        any_store.save("titles", "t = dc:title ;")
        assert any_store.resolve("titles") == "t = dc:title ;"

    def test_save_replaces(self, any_store):
        any_store.save("titles", "t = dc:title ;")
        any_store.save("titles", "d = dc:description ;")
        assert any_store.resolve("titles") == "d = dc:description ;"

    def test_bootstrap_keeps_existing(self, any_store):
        any_store.save("default", "mine = dc:title ;")
        any_store.bootstrap()
        assert any_store.resolve("default") == "mine = dc:title ;"

    def test_save_invalid_name(self, any_store):
        with pytest.raises(ProgramStoreError):
            any_store.save("a/b", "t = dc:title ;")

    def test_names(self, any_store):
        any_store.save("titles", "t = dc:title ;")
        assert any_store.names() == ["default", "deluxe", "titles"]


class TestKeyLayout:

    def test_default_key(self, memory_store):
        assert memory_store.key_for("default") == "/system/transform/default/ldpath_program.txt"

    def test_custom_layout(self):
        store = MemoryProgramStore(config_folder="/conf", program_filename="prog.txt")
        assert store.key_for("x") == "/conf/x/prog.txt"

    def test_file_layout(self, file_store, tmp_path):
        file_store.resolve("default")
        path = tmp_path / "system" / "transform" / "default" / "ldpath_program.txt"
        assert path.read_text(encoding="utf-8") == load_bundled_programs()["default"]

    def test_file_store_reads_existing_files(self, tmp_path):
        folder = tmp_path / "system" / "transform" / "custom"
        folder.mkdir(parents=True)
        (folder / "ldpath_program.txt").write_text("c = . ;", encoding="utf-8")
        store = FileProgramStore(tmp_path)
        assert store.resolve("custom") == "c = . ;"
        assert "custom" in store.names()

    def test_no_temp_files_left(self, file_store, tmp_path):
        file_store.bootstrap()
        folder = tmp_path / "system" / "transform" / "default"
        assert [p.name for p in folder.iterdir()] == ["ldpath_program.txt"]

    def test_custom_defaults(self):
        store = MemoryProgramStore(defaults={"only": "o = . ;"})
        assert store.default_names == ["only"]
        assert store.resolve("only") == "o = . ;"
        with pytest.raises(TransformNotFound):
            store.resolve("default")


class TestFailures:

    def test_io_failure_is_store_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = FileProgramStore(blocker)
        with pytest.raises(ProgramStoreError) as exc_info:
            store.resolve("default")
        assert not isinstance(exc_info.value, TransformNotFound)


class TestConcurrentBootstrap:
    """Concurrent first use leaves exactly one body."""

    def test_memory_store_writes_once(self):
        store = CountingStore()
        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: store.resolve("default"), range(64)))
        assert set(results) == {load_bundled_programs()["default"]}
        assert store.writes == 1

    def test_file_store(self, tmp_path):
        store = FileProgramStore(tmp_path)
        barrier = threading.Barrier(8)

        def resolve(_):
            barrier.wait()
            return store.resolve("default")

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(resolve, range(8)))

        assert set(results) == {load_bundled_programs()["default"]}
        folder = tmp_path / "system" / "transform" / "default"
        assert [p.name for p in folder.iterdir()] == ["ldpath_program.txt"]
