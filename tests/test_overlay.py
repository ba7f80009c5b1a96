"""Tests for applying and composing overlays."""

import logging

import pytest

from strata.overlay import (
    AnchorNotFoundError,
    DuplicateInputError,
    Overlay,
    PhaseEdit,
    add_after,
    add_before,
    apply_overlay,
    compose,
    delete_phase,
    merge_overlays,
    replace_phase,
)
from strata.recipe import BuildRecipe, Input, InputClass, Phase


def _base() -> BuildRecipe:
    return BuildRecipe(
        name="pkg",
        version="1.0",
        inputs=[
            Input("libfoo", "libfoo@sourceB"),
            Input("pkg-config", "pkg-config@0.29.2", InputClass.NATIVE),
        ],
        flags=["--enable-shared", "--enable-languages=c,c++"],
        make_flags=["V=1"],
        phases=[
            Phase("unpack", "gnu:unpack"),
            Phase("configure", "gnu:configure"),
            Phase("build", "gnu:build"),
            Phase("install", "gnu:install"),
        ],
    )


O1 = Overlay(
    name="o1",
    phase_edits=[add_before("configure", "set-lib-path", "export LIBRARY_PATH=/lib")],
)
O2 = Overlay(
    name="o2",
    phase_edits=[
        add_after("install", "wrap-libs", "wrapProgram $out/bin/pkg"),
        replace_phase("install", "make install-strip"),
    ],
)


# --- phases ---

def test_scenario_compose_two_overlays():
    result = compose(_base(), O1, O2)
    assert result.phase_names() == [
        "unpack", "set-lib-path", "configure", "build", "install", "wrap-libs",
    ]
    assert result.phase("install").payload == "make install-strip"


def test_base_not_mutated():
    base = _base()
    snapshot = _base()
    apply_overlay(base, O1)
    compose(base, O1, O2)
    assert base == snapshot


def test_phase_count_grows_by_inserts():
    base = _base()
    result = apply_overlay(base, O2)
    assert len(result.phases) == len(base.phases) + 1


def test_replace_keeps_position():
    base = _base()
    result = apply_overlay(base, Overlay(phase_edits=[replace_phase("build", "make -j4")]))
    assert result.phase_index("build") == base.phase_index("build")
    assert result.phases[2] == Phase("build", "make -j4")


def test_insert_is_adjacent_to_anchor():
    result = apply_overlay(_base(), Overlay(phase_edits=[
        add_after("unpack", "patch", "patch -p1 < fix.patch"),
        add_before("install", "check", "make check"),
    ]))
    assert result.phase_names() == [
        "unpack", "patch", "configure", "build", "check", "install",
    ]


def test_edits_apply_in_declaration_order():
    """A later edit in the same overlay can anchor on an earlier insert."""
    result = apply_overlay(_base(), Overlay(phase_edits=[
        add_after("build", "a", "a"),
        add_after("a", "b", "b"),
    ]))
    assert result.phase_names()[2:5] == ["build", "a", "b"]


def test_later_overlay_anchors_on_earlier_insert():
    o3 = Overlay(phase_edits=[add_after("set-lib-path", "check-lib-path", "test -d /lib")])
    result = compose(_base(), O1, o3)
    assert result.phase_names()[:4] == ["unpack", "set-lib-path", "check-lib-path", "configure"]


def test_missing_anchor_raises():
    base = _base()
    overlay = Overlay(phase_edits=[add_before("nonexistent-phase", "x", "true")])
    with pytest.raises(AnchorNotFoundError) as exc:
        apply_overlay(base, overlay)
    assert exc.value.anchor == "nonexistent-phase"
    assert exc.value.op == "before"
    assert base == _base()


def test_missing_anchor_after_valid_edits_leaves_base_unchanged():
    base = _base()
    overlay = Overlay(
        prepend_flags=["--with-x"],
        phase_edits=[add_after("unpack", "ok", "true"), replace_phase("nope", "true")],
    )
    with pytest.raises(AnchorNotFoundError):
        apply_overlay(base, overlay)
    assert base.phase_names() == ["unpack", "configure", "build", "install"]
    assert base.flags == ("--enable-shared", "--enable-languages=c,c++")


def test_anchor_on_deleted_phase_raises():
    with pytest.raises(AnchorNotFoundError):
        compose(
            _base(),
            Overlay(phase_edits=[delete_phase("build")]),
            Overlay(phase_edits=[add_after("build", "x", "true")]),
        )


def test_delete_phase():
    result = apply_overlay(_base(), Overlay(phase_edits=[delete_phase("configure")]))
    assert result.phase_names() == ["unpack", "build", "install"]


def test_insert_existing_name_rejected():
    with pytest.raises(ValueError, match="already exists"):
        apply_overlay(_base(), Overlay(phase_edits=[add_after("unpack", "build", "x")]))


def test_phase_edit_validation():
    with pytest.raises(ValueError, match="unknown phase edit"):
        PhaseEdit("around", "build", Phase("x", "x"))
    with pytest.raises(ValueError, match="needs a phase"):
        PhaseEdit("before", "build")
    with pytest.raises(ValueError, match="must keep its name"):
        PhaseEdit("replace", "build", Phase("compile", "make"))


# --- flags ---

def test_prepend_and_append_flags_preserve_order():
    result = apply_overlay(_base(), Overlay(
        prepend_flags=["--a", "--b"], append_flags=["--y", "--z"],
    ))
    assert result.flags == (
        "--a", "--b", "--enable-shared", "--enable-languages=c,c++", "--y", "--z",
    )


def test_drop_flags_by_prefix():
    result = apply_overlay(_base(), Overlay(
        drop_flags=["--enable-languages"], prepend_flags=["--enable-languages=jit"],
    ))
    assert result.flags == ("--enable-languages=jit", "--enable-shared")


def test_empty_drop_prefix_rejected():
    with pytest.raises(ValueError, match="empty drop_flags prefix"):
        Overlay(name="careless", drop_flags=["--enable-shared", ""])


def test_make_flags():
    result = apply_overlay(_base(), Overlay(
        prepend_make_flags=["NATIVE_FULL_AOT=1"], append_make_flags=["-j4"],
    ))
    assert result.make_flags == ("NATIVE_FULL_AOT=1", "V=1", "-j4")


# --- inputs ---

def test_duplicate_input_first_wins():
    result = apply_overlay(_base(), Overlay(inputs=[Input("libfoo", "libfoo@sourceA")]))
    assert result.input(InputClass.RUNTIME, "libfoo").source == "libfoo@sourceB"
    assert len(result.inputs) == 2


def test_duplicate_input_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="strata.overlay"):
        apply_overlay(_base(), Overlay(inputs=[Input("libfoo", "libfoo@sourceA")]))
    assert "ignoring redeclaration as libfoo@sourceA" in caplog.text


def test_duplicate_input_strict():
    with pytest.raises(DuplicateInputError) as exc:
        apply_overlay(
            _base(),
            Overlay(inputs=[Input("libfoo", "libfoo@sourceA")]),
            strict_inputs=True,
        )
    assert exc.value.existing.source == "libfoo@sourceB"
    assert exc.value.new.source == "libfoo@sourceA"


def test_identical_redeclaration_is_noop_even_when_strict():
    result = apply_overlay(
        _base(),
        Overlay(inputs=[Input("libfoo", "libfoo@sourceB")]),
        strict_inputs=True,
    )
    assert result.inputs == _base().inputs


def test_input_classes_are_separate():
    result = apply_overlay(_base(), Overlay(inputs=[
        Input("libfoo", "libfoo@sourceA", InputClass.PROPAGATED),
    ]))
    assert result.input(InputClass.PROPAGATED, "libfoo").source == "libfoo@sourceA"
    assert result.input(InputClass.RUNTIME, "libfoo").source == "libfoo@sourceB"


def test_new_inputs_appended_in_order():
    result = apply_overlay(_base(), Overlay(inputs=[
        Input("libgccjit", "libgccjit@10.2.0"),
        Input("glibc", "glibc@2.31"),
    ]))
    assert [i.name for i in result.inputs_of(InputClass.RUNTIME)] == [
        "libfoo", "libgccjit", "glibc",
    ]


# --- composition ---

def test_compose_equals_repeated_apply():
    base = _base()
    assert compose(base, O1, O2) == apply_overlay(apply_overlay(base, O1), O2)


def test_compose_no_overlays_is_identity():
    base = _base()
    assert compose(base) is base


class TestMergeOverlays:
    """A merged overlay has the same effect as applying its parts in order."""

    A = Overlay(
        name="a",
        prepend_flags=["--a1", "--a2"],
        append_flags=["--a-end"],
        drop_flags=["--enable-shared"],
        prepend_make_flags=["A=1"],
        append_make_flags=["A_END=1"],
        phase_edits=[add_after("build", "a", "a")],
        inputs=[Input("liba", "liba@1"), Input("libfoo", "libfoo@sourceA")],
    )
    B = Overlay(
        name="b",
        prepend_flags=["--b1"],
        append_flags=["--b-end"],
        drop_flags=["--a2", "--a-end"],
        prepend_make_flags=["B=1"],
        phase_edits=[add_after("a", "b", "b"), replace_phase("install", "i")],
        inputs=[Input("liba", "liba@2")],
    )

    def test_equivalent_to_compose(self):
        base = _base()
        assert apply_overlay(base, merge_overlays(self.A, self.B)) == compose(base, self.A, self.B)

    def test_flag_layout(self):
        merged = merge_overlays(self.A, self.B)
        assert merged.prepend_flags == ("--b1", "--a1")
        assert merged.append_flags == ("--b-end",)
        assert merged.prepend_make_flags == ("B=1", "A=1")

    def test_name(self):
        assert merge_overlays(self.A, self.B).name == "a+b"

    def test_scenario_overlays(self):
        base = _base()
        assert apply_overlay(base, merge_overlays(O1, O2)) == compose(base, O1, O2)
