from __future__ import annotations

from openit.template import TemplateEngine


def test_render_substitutes_known_variables() -> None:
    engine = TemplateEngine().set("file", "notes.txt").set("mime", "text/plain")

    assert engine.render("Open '{file}' ({mime})") == "Open 'notes.txt' (text/plain)"


def test_unknown_placeholders_and_double_braces_stay_literal() -> None:
    engine = TemplateEngine({"name": "Editor"})

    assert engine.render("{name} {missing} {{name}}") == "Editor {missing} {{name}}"


def test_render_args_and_clear() -> None:
    engine = TemplateEngine().set("prompt", "Pick: ")

    assert engine.render_args(["--prompt", "{prompt}", "--x={prompt}"]) == [
        "--prompt",
        "Pick: ",
        "--x=Pick: ",
    ]
    assert engine.get("prompt") == "Pick: "
    engine.clear()
    assert engine.get("prompt") is None
    assert engine.render("{prompt}") == "{prompt}"
