import os

import pytest

from regvm.modules import (
    Export,
    LoadedSource,
    Module,
    ModuleError,
    ModuleRegistry,
    cache_path_for,
    load_module_with_fallback,
    module_short_name,
)
from regvm.values import i32


def test_short_name_strips_directory_and_extension():
    assert module_short_name("std/math.orus") == "math"
    assert module_short_name("plain") == "plain"


def test_short_name_keeps_bare_extension():
    assert module_short_name(".orus") == ".orus"


def test_module_name_defaults_from_path():
    mod = Module("lib/util.orus")
    assert mod.name == "util"
    assert mod.exports == []
    assert not mod.executed


def test_cache_path():
    assert cache_path_for(None, "a/b.orus") is None
    assert cache_path_for("cache", "a/b.orus") == "cache/b.orus.obc"


def test_load_from_disk(tmp_path):
    f = tmp_path / "m.orus"
    f.write_text("print(1)")
    loaded = load_module_with_fallback(str(f))
    assert loaded.source == "print(1)"
    assert loaded.disk_path == str(f)
    assert loaded.mtime == int(os.stat(f).st_mtime)
    assert not loaded.from_embedded


def test_load_from_std_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    lib = tmp_path / "lib"
    lib.mkdir()
    (lib / "math.orus").write_text("fn f() {}")
    loaded = load_module_with_fallback("std/math.orus", str(lib))
    assert loaded.source == "fn f() {}"
    assert loaded.disk_path == f"{lib}/math.orus"


def test_load_embedded(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    loaded = load_module_with_fallback("x.orus", None, {"x.orus": "code"})
    assert loaded == LoadedSource("code", None, 0, True)


def test_missing_module_raises(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ModuleError, match="not found"):
        load_module_with_fallback("nope.orus", None, {})


def test_register_and_lookup():
    reg = ModuleRegistry()
    mod = Module("a.orus", exports=[Export("x", i32(1), 0)])
    reg.register(mod)
    assert len(reg) == 1
    assert reg.get("a.orus") is mod
    assert reg.get("b.orus") is None
    assert reg.get_export(mod, "x").value == i32(1)
    assert reg.get_export(mod, "y") is None


def test_registry_capacity():
    reg = ModuleRegistry()
    for n in range(255):
        reg.register(Module(f"m{n}"))
    with pytest.raises(ModuleError):
        reg.register(Module("extra"))
    assert len(reg) == 255


def test_import_cycle_detected():
    reg = ModuleRegistry()
    reg.begin_loading("a")
    reg.begin_loading("b")
    with pytest.raises(ModuleError, match="`a`"):
        reg.begin_loading("a")


def test_finish_loading_allows_reload():
    reg = ModuleRegistry()
    reg.begin_loading("a")
    reg.finish_loading("a")
    reg.begin_loading("a")
    with pytest.raises(ModuleError):
        reg.finish_loading("b")