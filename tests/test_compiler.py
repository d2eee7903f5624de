"""Tests for compiling templates into render functions."""

import asyncio

import pytest

import tplc
from tplc import EvaluationError, TemplateSyntaxError, compile, compile_code, compile_file

from conftest import data


def run(coro):
    return asyncio.run(coro)


def test_simple():
    tm = run(compile("Hello <?= name ?>!"))
    assert tm({"name": "World"}) == "Hello World!"


def test_simple_file():
    tm = run(compile_file(data("simple.html")))
    assert tm({"text": "Test"}).startswith("<p>Test</p>")


def test_literal_only_template_is_returned_unchanged():
    text = "plain 'quoted' \"text\" with \\ backslashes\nand {braces} %s"
    tm = run(compile(text))
    assert tm() == text
    assert tm({"anything": 1}) == text


def test_escaped_and_unescaped_output():
    tm = run(compile("<?= value ?>|<?- value ?>"))
    assert tm({"value": "<b>&</b>"}) == "&lt;b&gt;&amp;&lt;/b&gt;|<b>&</b>"
    assert tm({"value": 3}) == "3|3"


def test_keyword_values_merge_over_record():
    tm = run(compile("<?= a ?><?= b ?>"))
    assert tm({"a": 1, "b": 2}, b=3) == "13"


def test_record_is_available_as_locals():
    tm = run(compile("<? if 'title' in locals: ?><?= title ?><? else: ?>untitled<? end ?>"))
    assert tm({"title": "Home"}) == "Home"
    assert tm() == "untitled"


def test_runtime_loop():
    tm = run(compile("<ul><? for item in items: ?><li><?= item ?></li><? end ?></ul>"))
    assert tm({"items": ["a", "<b>"]}) == "<ul><li>a</li><li>&lt;b&gt;</li></ul>"
    assert tm({"items": []}) == "<ul></ul>"


def test_runtime_try_except_blocks():
    source = "<? try: ?><?= 1 // d ?><? except ZeroDivisionError: ?>inf<? end ?>"
    tm = run(compile(source))
    assert tm({"d": 1}) == "1"
    assert tm({"d": 0}) == "inf"


def test_emit_control_code():
    tm = run(compile("<?: write('value = 42') ?><?= value ?>"))
    assert tm() == "42"


def test_emit_control_code_with_escaped_literals():
    source = """<?: write("value = '" + string_escape("a'b") + "'") ?><?- value ?>"""
    tm = run(compile(source))
    assert tm() == "a'b"


def test_output_appends_literal_text():
    tm = run(compile("<?: output('<i>\\'raw\\'</i>') ?>!"))
    assert tm() == "<i>'raw'</i>!"


def test_filename():
    source = """<?: write("value = '" + string_escape(filename) + "'") ?><?- value ?>"""
    tm = run(compile(source, filename="a/b.html"))
    assert tm() == "a/b.html"


def test_dirname():
    source = """<?: write("value = '" + string_escape(dirname) + "'") ?><?- value ?>"""
    tm = run(compile(source, filename="a/b.html"))
    assert tm() == "a"


def test_compile_time_loop_unrolls_output():
    source = "<?: for i in range(3): ?><?: output(str(i)) ?><?: end ?>"
    code = run(compile_code(source))
    assert "range" not in code
    assert tplc.load(code)() == "012"


def test_compile_time_directives_leave_no_trace():
    source = "<?: secret = 'compile-only' ?><?: write('x = 1') ?><?= x ?>"
    code = run(compile_code(source))
    assert "secret" not in code
    assert "compile-only" not in code
    assert "include" not in code
    assert code.startswith("@__t\ndef __template__(locals):\n")


def test_inline_template_context_manager():
    source = (
        '<?: with template("d"): ?><?= value ?><?: end ?>'
        '<?- d({"value": 7}) ?>, <?- d({"value": 14}) ?>'
    )
    tm = run(compile(source))
    assert tm() == "7, 14"


def test_inline_template_uses_parent_locals():
    source = (
        '<?: with template("inline"): ?><?= value ?><?: end ?>'
        "<?- inline() ?>, <?- inline({'value': value * 2}) ?>"
    )
    tm = run(compile(source))
    assert tm({"value": 7}) == "7, 14"


def test_inline_template_callable_body():
    source = (
        "<?: def body(): ?><?= value ?><?: end ?>"
        '<?: template("d", body) ?>'
        '<?- d({"value": 1}) ?><?- d(value=2) ?>'
    )
    tm = run(compile(source))
    assert tm() == "12"


def test_inline_templates_keep_no_state_between_calls():
    source = (
        '<?: with template("counter"): ?>'
        "<? n = locals.get('start', 0) + 1 ?><?= n ?>"
        "<?: end ?>"
        "<?- counter() ?><?- counter({'start': 5}) ?><?- counter() ?>"
    )
    tm = run(compile(source))
    assert tm() == "161"
    assert tm() == "161"


def test_async_templates():
    async def scenario():
        tm = await compile("<?= await value ?>", {"async": True})
        future = asyncio.get_running_loop().create_future()
        future.set_result(42)
        return await tm({"value": future})

    assert run(scenario()) == "42"


def test_async_inline_template():
    async def pending(v):
        await asyncio.sleep(0)
        return v

    async def scenario():
        source = (
            '<?: with template("a", {"async": True}): ?><?= await v ?><?: end ?>'
            "<?- await a({'v': pending(5)}) ?>"
        )
        tm = await compile(source, is_async=True)
        return await tm({"pending": pending})

    assert run(scenario()) == "5"


def test_extend():
    def extend(context):
        context.embed_magic = lambda: context.write("magic = 42")

    tm = run(compile("<?: embed_magic() ?><?= magic ?>", extend=extend))
    assert tm() == "42"


def test_custom_syntax():
    syntax = {"write_escaped": ("{{", "}}"), "control": ("{%", "%}")}
    tm = run(compile("{% for n in ns: %}[{{ n }}]{% end %}", syntax=syntax))
    assert tm({"ns": [1, 2]}) == "[1][2]"


def test_verbatim_directive_emits_markers():
    tm = run(compile("<?! <?= not code ?>"))
    assert tm() == " <?= not code "


def test_unterminated_directive_fails():
    with pytest.raises(TemplateSyntaxError):
        run(compile("Hello <?= name"))


def test_unterminated_directive_in_file_reports_filename():
    with pytest.raises(TemplateSyntaxError) as info:
        run(compile_file(data("broken.html")))
    assert info.value.filename.endswith("broken.html")
    assert info.value.lineno == 1


def test_unclosed_runtime_block_fails():
    with pytest.raises(TemplateSyntaxError):
        run(compile("<? for x in xs: ?><?= x ?>"))


def test_unclosed_compile_time_block_fails():
    with pytest.raises(TemplateSyntaxError):
        run(compile("<?: if True: ?>text"))


def test_stray_end_fails_with_position():
    with pytest.raises(TemplateSyntaxError) as info:
        run(compile("ok\n<?: end ?>"))
    assert info.value.lineno == 2


def test_compile_time_exception_becomes_evaluation_error():
    with pytest.raises(EvaluationError) as info:
        run(compile("<?: raise RuntimeError('boom') ?>", filename="page.html"))
    assert "page.html" in str(info.value)
    assert isinstance(info.value.__cause__, RuntimeError)


def test_invalid_python_in_directive_is_an_evaluation_error():
    with pytest.raises(EvaluationError):
        run(compile("<?: this is not python ?>"))


def test_invalid_runtime_python_fails_at_load():
    code = run(compile_code("<?= ) ?>"))
    with pytest.raises(EvaluationError):
        tplc.load(code)


def test_extension_errors_become_evaluation_errors():
    def extend(context):
        raise KeyError("nope")

    with pytest.raises(EvaluationError):
        run(compile("x", extend=extend))


def test_inline_template_ignores_parent_locals():
    source = (
        "<? value = 1 ?>"
        "<?: with template('d'): ?><?= value ?><?: end ?>"
        "<?- d({'value': 7}) ?>,<?= value ?>"
    )
    tm = run(compile(source))
    assert tm() == "7,1"


def test_inline_templates_are_hoisted_out_of_the_render_function():
    code = run(compile_code("<?: with template('d'): ?>x<?: end ?><?- d() ?>"))
    assert code.startswith("def __tplc_1(locals):\n")
    assert "@__t\ndef __template__(locals):\n" in code
    assert "d = __t(__tplc_1, globals())" in code


def test_nested_inline_templates():
    source = (
        "<?: with template('outer'): ?>"
        "<?: with template('inner'): ?>(<?= v ?>)<?: end ?>"
        "<?- inner() ?><?- inner(v=v + 1) ?>"
        "<?: end ?>"
        "<?- outer(v=1) ?>"
    )
    tm = run(compile(source))
    assert tm() == "(1)(2)"
