"""Tests for the strata command line."""

import json

import pytest

from strata.base32 import encode
from strata.hash import sha256
from strata.main import load_channel, main
from strata.serialize import parse, recipe_digest
from stratapkgs.channel import EditorPkgs


def _run(capsys, *argv):
    main(list(argv))
    return capsys.readouterr().out


def test_load_channel_default():
    assert isinstance(load_channel("stratapkgs.channel:EditorPkgs"), EditorPkgs)


def test_load_channel_rejects_missing_attr():
    with pytest.raises(ValueError, match="module:attr"):
        load_channel("stratapkgs.channel")


def test_list(capsys):
    out = _run(capsys, "list")
    assert "libgccjit\t10.2.0\n" in out
    assert "emacs-native-comp\t28.0.50-1.2b0f589\n" in out


def test_show_roundtrips(capsys):
    out = _run(capsys, "show", "emacs-native-comp")
    assert parse(out.strip()) == EditorPkgs().emacs_native_comp


def test_show_json(capsys):
    info = json.loads(_run(capsys, "show", "libgccjit", "--json"))
    assert info["name"] == "libgccjit"
    assert info["flags"][0] == "--enable-host-shared"
    assert info["source"]["method"] == "url"


def test_phases(capsys):
    names = _run(capsys, "phases", "emacs_native_comp").split()
    assert names.index("set-libgccjit-path") + 1 == names.index("configure")


def test_digest(capsys):
    out = _run(capsys, "digest", "emacs")
    assert out.strip() == recipe_digest(EditorPkgs().emacs)


def test_unknown_recipe_exits_1(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["show", "vim"])
    assert exc.value.code == 1
    assert "no recipe named 'vim'" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1


def test_hash_path_base32(capsys, tmp_path):
    f = tmp_path / "hello.txt"
    f.write_text("hello")
    out = _run(capsys, "hash-path", str(f), "--base32")
    assert out.startswith("sha256:")
    assert len(out.strip()) == len("sha256:") + 52


def test_verify_mismatch_exits_1(capsys, tmp_path):
    tarball = tmp_path / "emacs-27.1.tar.xz"
    tarball.write_bytes(b"not the release")
    with pytest.raises(SystemExit) as exc:
        main(["verify", "emacs", str(tarball)])
    assert exc.value.code == 1
    assert encode(sha256(b"not the release")) in capsys.readouterr().err


def test_lock_and_check_lock(capsys, tmp_path):
    lockfile = tmp_path / "strata.lock"
    main(["lock", "-o", str(lockfile)])
    doc = json.loads(lockfile.read_text())
    assert {e["name"] for e in doc["recipes"]} == {
        "gcc", "libgccjit", "emacs", "emacs-native-comp", "emacs-pgtk-native-comp",
    }
    capsys.readouterr()
    assert _run(capsys, "check-lock", str(lockfile)).strip() == "lock ok"


def test_check_lock_drift_exits_1(capsys, tmp_path):
    lockfile = tmp_path / "strata.lock"
    main(["lock", "-o", str(lockfile)])
    doc = json.loads(lockfile.read_text())
    for e in doc["recipes"]:
        if e["name"] == "libgccjit":
            e["digest"] = "0" * 32
    lockfile.write_text(json.dumps(doc))
    with pytest.raises(SystemExit) as exc:
        main(["check-lock", str(lockfile)])
    assert exc.value.code == 1
    assert "without a revision bump" in capsys.readouterr().err


BROKEN_CHANNEL = '''
from functools import cached_property

from strata.overlay import Overlay, add_after, apply_overlay
from strata.recipe import BuildRecipe, Phase
from stratapkgs.package_set import RecipeSet


class BrokenPkgs(RecipeSet):

    @cached_property
    def broken(self):
        base = BuildRecipe(name="broken", version="1", phases=[Phase("build", "make")])
        return apply_overlay(base, Overlay(phase_edits=[add_after("install", "strip", "strip")]))
'''


def test_missing_anchor_exits_1(capsys, tmp_path, monkeypatch):
    (tmp_path / "broken_channel.py").write_text(BROKEN_CHANNEL)
    monkeypatch.syspath_prepend(str(tmp_path))
    with pytest.raises(SystemExit) as exc:
        main(["--channel", "broken_channel:BrokenPkgs", "show", "broken"])
    assert exc.value.code == 1
    assert "cannot after 'install': no such phase" in capsys.readouterr().err


def test_missing_lockfile_exits_1(capsys, tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["check-lock", str(tmp_path / "nope.json")])
    assert exc.value.code == 1
    assert "nope.json" in capsys.readouterr().err


def test_hash_missing_path_exits_1(capsys, tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["hash-path", str(tmp_path / "absent")])
    assert exc.value.code == 1
    assert capsys.readouterr().err.startswith("strata: ")


def test_unknown_channel_module_exits_1(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--channel", "no_such_channel_module:Pkgs", "list"])
    assert exc.value.code == 1
    assert "no_such_channel_module" in capsys.readouterr().err


def test_unknown_channel_attr_exits_1(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--channel", "stratapkgs.channel:NoSuchPkgs", "list"])
    assert exc.value.code == 1
    assert "has no attribute 'NoSuchPkgs'" in capsys.readouterr().err
