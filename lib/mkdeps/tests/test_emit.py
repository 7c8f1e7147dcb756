import logging
import pytest
from mkdeps import config, emit, utils
from mkdeps.emit import CONTINUATION, MARKER, Emitter
from mkdeps.project import Closure, Project, SourceFile
from mkdeps.scanner import LIB_TARGET, MAIN_TARGET, NOT_TARGET

def cfg(**kwargs):
    kwargs.setdefault("cwd", "/proj")
    return config.make_config(**kwargs)

def test_short_lines_are_not_wrapped():
    assert emit.wrap_words(["a.o:", "a.c", "a.h"]) == "a.o: a.c a.h"

def test_long_lines_wrap_at_token_boundaries():
    words = ["target.o:"] + ["include/some/long/header_{:02}.h".format(i)
                             for i in range(12)]
    text = emit.wrap_words(words)
    assert CONTINUATION in text
    assert emit.unwrap(text) == " ".join(words)
    for line in text.split("\n"):
        assert len(line) <= emit.WIDTH
    for line in text.split("\n")[:-1]:
        assert line.endswith(" \\")
    tokens = set(words)
    for line in text.split("\n"):
        for token in line.strip().rstrip("\\").split():
            assert token in tokens

@pytest.mark.parametrize("last", ["yyy", "yyyy"])
def test_line_that_fits_is_not_wrapped(last):
    words = ["t.o:", "x" * 70, last]
    assert len(" ".join(words)) in (79, 80)
    assert emit.wrap_words(words) == " ".join(words)

def test_line_one_column_too_long_is_wrapped():
    words = ["t.o:", "x" * 70, "yyyyy"]
    assert emit.wrap_words(words) == ("t.o: " + "x" * 70 + " " +
                                      CONTINUATION + "yyyyy")

def test_oversized_token_is_never_split():
    huge = "x" * 100
    text = emit.wrap_words(["a:", huge, "b"])
    assert huge in text.split("\n")[1]
    assert emit.unwrap(text) == "a: " + huge + " b"

def test_wrap_words_rejects_str():
    with pytest.raises(TypeError):
        emit.wrap_words("a b c")

def test_render_rule_and_variable():
    assert emit.render_rule(["a.o", "b.o"], ["a.c"]) == "a.o b.o: a.c\n"
    assert emit.render_rule(["all"], []) == "all:\n"
    assert emit.render_variable("X", []) == "X =\n"
    assert emit.render_variable("X", ["a", "b"]) == "X = a b\n"
    with pytest.raises(ValueError):
        emit.render_rule([], ["a"])

def test_object_rule():
    src = SourceFile("foo", "foo.c", NOT_TARGET, {"inc/foo.h", "/proj/bar.h"})
    assert Emitter(cfg()).object_rules(src) == "foo.o: foo.c bar.h inc/foo.h\n\n"

def test_object_rule_for_every_dir_and_abi():
    src = SourceFile("foo", "src/foo.c", NOT_TARGET, {"foo.h"})
    text = Emitter(cfg(object_dirs=["rel", "dbg"], abis=["pic"],
                       object_ext=".obj")).object_rules(src)
    assert emit.unwrap(text) == ("dbg/foo.obj dbg/foo-pic.obj rel/foo.obj "
                                 "rel/foo-pic.obj: src/foo.c foo.h\n\n")

def test_header_prefix():
    src = SourceFile("foo", "foo.c", NOT_TARGET, {"bar.h"})
    text = Emitter(cfg(header_prefix="$(SRC)/")).object_rules(src)
    assert text == "foo.o: foo.c $(SRC)/bar.h\n\n"

def test_precompiled_source_gets_gch_target():
    src = SourceFile("precompiled", "precompiled.hpp", NOT_TARGET, {"x.h"})
    text = Emitter(cfg()).object_rules(src)
    assert text == "precompiled.hpp.gch: precompiled.hpp x.h\n\n"

def test_per_file_precompiled_headers():
    src = SourceFile("foo", "foo.c", NOT_TARGET, {"bar.h"})
    emitter = Emitter(cfg(precomp_headers=True, abis=["pic"]))
    text = emitter.object_rules(src)
    assert "foo.o: foo-incls.hpp.gch\n" in text
    assert "foo-pic.o: foo-incls.hpp-pic.gch\n" in text
    assert ("foo.o foo-pic.o foo-incls.hpp.gch foo-incls.hpp-pic.gch: "
            "foo.c bar.h\n") in emit.unwrap(text)
    assert emitter.shims == {"foo-incls.hpp": "#include \"bar.h\"\n"}

def test_library_headers_variable():
    emitter = Emitter(cfg(header_prefix="h/"))
    src = SourceFile("mylib", "mylib.c", LIB_TARGET, {"mylib.h", "util.h"})
    text = emitter.emit_objects([src])
    assert "DEPS_mylib = h/mylib.h h/util.h\n" in text
    assert emitter.full_lib_headers == ["$(DEPS_mylib)"]

def sample_closures():
    return {
        "prog": Closure("prog", MAIN_TARGET, {"prog", "util"},
                        {"prog.c", "util.c", "util.h"}),
        "util": Closure("util", NOT_TARGET, {"util"}),
        "mylib": Closure("mylib", LIB_TARGET, {"mylib"}),
    }

def test_link_rules_with_pic():
    text = Emitter(cfg(abis=["pic"], exe_ext=".exe")).emit_links(
        sample_closures())
    assert "prog.exe: prog.o util.o\n" in text
    assert "prog-pic.exe: prog-pic.o util-pic.o\n" in text
    assert "libmylib.a: mylib.o\n" in text
    assert "libmylib.so.$(SONAME): mylib-pic.o\n" in text
    assert "libmylib.so.$(SONAME): mylib.o\n" not in text
    assert "util" not in text.split("FULL_TARGETS =")[1].split("\n")[0]
    assert ("FULL_TARGETS = libmylib.a libmylib.so.$(SONAME) prog.exe "
            "prog-pic.exe\n") in text
    assert "full_targets: $(FULL_TARGETS)\n" in text

def test_link_rules_without_pic():
    text = Emitter(cfg(abis=["dbg"])).emit_links(sample_closures())
    assert "libmylib-dbg.so.$(SONAME): mylib-dbg.o\n" in text
    assert "libmylib.so.$(SONAME): mylib.o\n" in text

def test_link_rules_with_object_dirs():
    text = Emitter(cfg(object_dirs=["out"], lib_prefix="",
                       lib_suffix=".so", ar_suffix=".lib")).emit_links(
        sample_closures())
    assert "out/prog: out/prog.o out/util.o\n" in text
    assert "out/mylib.lib: out/mylib.o\n" in text
    assert "out/mylib.so: out/mylib.o\n" in text

def test_library_prefix_is_not_doubled():
    closures = {"libfoo": Closure("libfoo", LIB_TARGET, {"libfoo"})}
    text = Emitter(cfg()).emit_links(closures)
    assert "libfoo.a: libfoo.o\n" in text

def test_potdeps():
    text = Emitter(cfg(potdeps=True)).emit_links(sample_closures())
    assert "pot/prog.pot: prog.c util.c util.h\n" in text
    assert "pot/mylib.pot:\n" in text
    assert "pot/util.pot" not in text

def test_target_precompiled_headers():
    proj = Project()
    proj.add("prog.c", {"prog.h", "util.h"}, MAIN_TARGET)
    proj.add("util.c", {"util.h", "/usr/include/stdio.h"}, NOT_TARGET)
    proj.add_given_file("prog.c")
    proj.add_given_file("util.c")
    emitter = Emitter(cfg(precomp_targets=True, abis=["pic"]))
    text = emitter.render(proj, proj.compute_closures())
    assert "# Precompiled headers.\n" in text
    assert ("prog-precomp.hpp.gch prog-precomp.hpp-pic.gch: "
            "/usr/include/stdio.h prog.h util.h\n") in emit.unwrap(text)
    assert emitter.shims["prog-precomp.hpp"] == (
        "#include \"/usr/include/stdio.h\"\n"
        "#include \"prog.h\"\n"
        "#include \"util.h\"\n")

def test_full_lib_headers_collects_every_library():
    proj = Project()
    proj.add("b.c", {"b.h"}, LIB_TARGET)
    proj.add("a.c", {"a.h"}, LIB_TARGET)
    text = Emitter(cfg()).render(proj, proj.compute_closures())
    assert "FULL_LIB_HEADERS = $(DEPS_a) $(DEPS_b)\n" in text

def test_render_is_deterministic():
    def build():
        proj = Project()
        for i in range(30):
            name = "mod{:02}".format(i)
            deps = set("inc/mod{:02}.h".format(j) for j in range(0, i, 3))
            proj.add(name + ".c", deps, MAIN_TARGET if i % 7 == 0
                     else NOT_TARGET)
            proj.add_given_file(name + ".c")
        return Emitter(cfg(abis=["pic", "dbg"], object_dirs=["a", "b"])) \
            .render(proj, proj.compute_closures())
    assert build() == build()

def test_write_makefile_keeps_prologue(tmp_path):
    path = tmp_path / "makefile"
    path.write_text("CC = gcc\n\nall: prog\n" + MARKER + "\nold stuff\n")
    assert emit.write_makefile(str(path), "new stuff\n")
    assert path.read_text() == ("CC = gcc\n\nall: prog\n" + MARKER +
                                "\n\nnew stuff\n")
    assert not (tmp_path / "makefile.tmp").exists()

def test_write_makefile_append(tmp_path):
    path = tmp_path / "makefile"
    old = "CC = gcc\n" + MARKER + "\n\nold stuff\n"
    path.write_text(old)
    emit.write_makefile(str(path), "new stuff\n", append=True)
    assert path.read_text() == old + "new stuff\n"

def test_write_makefile_creates_new_file(tmp_path):
    path = tmp_path / "makefile"
    emit.write_makefile(str(path), "body\n")
    assert path.read_text() == MARKER + "\n\nbody\n"

def test_failed_rename_leaves_temporary_file(tmp_path, monkeypatch, caplog):
    path = tmp_path / "makefile"
    path.write_text("prologue\n")
    def rename(src, dest):
        raise OSError(13, "Permission denied")
    monkeypatch.setattr(utils, "rename", rename)
    with caplog.at_level(logging.WARNING, logger="mkdeps.utils"):
        assert not emit.write_makefile(str(path), "body\n")
    assert path.read_text() == "prologue\n"
    assert (tmp_path / "makefile.tmp").read_text() == (
        "prologue\n" + MARKER + "\n\nbody\n")
    assert any("renaming" in r.getMessage() for r in caplog.records)

def test_write_error_is_reported_as_output_error(tmp_path, monkeypatch):
    path = tmp_path / "makefile"
    path.write_text("prologue\n")
    def transfer_header(*args, **kwargs):
        raise OSError(28, "No space left on device")
    monkeypatch.setattr(emit, "transfer_header", transfer_header)
    with pytest.raises(utils.OutputError) as info:
        emit.write_makefile(str(path), "body\n")
    assert "No space left on device" in str(info.value)
    assert isinstance(info.value.__cause__, OSError)
    assert path.read_text() == "prologue\n"
    assert not (tmp_path / "makefile.tmp").exists()

def test_unwritable_makefile_is_fatal(tmp_path):
    path = tmp_path / "missing-dir" / "makefile"
    with pytest.raises(utils.OutputError):
        emit.write_makefile(str(path), "body\n")
