import json
import subprocess
import sys
from pathlib import Path

import pytest

from mdxform.cli import load_config, main

REPO_ROOT = Path(__file__).resolve().parents[1]
EXAMPLES_DIR = REPO_ROOT / "examples"


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_cli_help_is_informative() -> None:
    result = subprocess.run(
        [sys.executable, "-m", "mdxform.cli", "--help"],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
        check=False,
    )

    assert result.returncode == 0, result.stderr
    assert "Compile MDX form directives" in result.stdout
    for command in ("render", "check", "tokens", "ast", "datasource"):
        assert command in result.stdout


def test_render_to_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    main(["render", "--in", str(EXAMPLES_DIR / "contact.mdx")])

    out = capsys.readouterr().out
    assert 'hx-post="/mdx/forms/example/submit"' in out
    assert 'hx-get="/api/products"' in out


def test_render_to_file_and_check(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _write(tmp_path / "form.mdx", '@form action="/s"\n@submit label="Go"\n@endform\n')
    output = tmp_path / "form.html"

    main(["render", "--in", str(source), "--out", str(output)])
    assert output.exists()

    main(["render", "--in", str(source), "--out", str(output), "--check"])
    assert "is up to date" in capsys.readouterr().out

    _write(source, '@form action="/t"\n@submit label="Go"\n@endform\n')
    with pytest.raises(SystemExit) as excinfo:
        main(["render", "--in", str(source), "--out", str(output), "--check"])
    assert excinfo.value.code == 1
    assert '+<form hx-post="/t"' in capsys.readouterr().err


def test_render_prints_warnings_to_stderr(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _write(tmp_path / "form.mdx", "@group\n@endform\n")

    main(["render", "--in", str(source)])

    captured = capsys.readouterr()
    assert "[MismatchedClose]" in captured.err
    assert "<p" in captured.out


def test_render_strict_exits_on_structure_error(tmp_path: Path) -> None:
    source = _write(tmp_path / "form.mdx", "@form\n@input name=\"x\"\n")

    with pytest.raises(SystemExit) as excinfo:
        main(["render", "--in", str(source), "--strict"])

    assert "UnclosedContainer" in str(excinfo.value.code)


def test_render_escape_flag(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _write(tmp_path / "form.mdx", '@submit label="<b>Go</b>"\n')

    main(["render", "--in", str(source), "--escape"])

    assert "&lt;b&gt;Go&lt;/b&gt;" in capsys.readouterr().out


def test_check_reports_all_diagnostics(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _write(tmp_path / "form.mdx", "text\n@endform\n@input\n")

    with pytest.raises(SystemExit) as excinfo:
        main(["check", "--in", str(source)])

    assert excinfo.value.code == 1
    out = capsys.readouterr().out
    assert "line 1: [UnparsableLine]" in out
    assert "line 2: [UnmatchedClose]" in out
    assert "line 3: [DetachedDirective]" in out


def test_check_passes_clean_source(capsys: pytest.CaptureFixture[str]) -> None:
    main(["check", "--in", str(EXAMPLES_DIR / "contact.mdx")])

    assert "No structural problems" in capsys.readouterr().out


def test_tokens_dump_keeps_prop_order(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _write(tmp_path / "form.mdx", '@input name="a" label="B"\n')

    main(["tokens", "--in", str(source)])

    payload = json.loads(capsys.readouterr().out)
    assert payload == [{"directive": "input", "props": {"name": "a", "label": "B"}, "line": 1}]
    assert list(payload[0]["props"]) == ["name", "label"]


def test_ast_dump(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _write(tmp_path / "form.mdx", '@group label="G"\n@form\n@endform\n@endgroup\n')

    main(["ast", "--in", str(source)])

    payload = json.loads(capsys.readouterr().out)
    (group,) = payload["children"]
    assert group["kind"] == "group"
    assert [child["kind"] for child in group["children"]] == ["form"]


def test_datasource_resolves_options(capsys: pytest.CaptureFixture[str]) -> None:
    main(
        [
            "datasource",
            "--config",
            str(EXAMPLES_DIR / "mdxform.yaml"),
            "--source",
            "/api/products",
        ]
    )

    out = capsys.readouterr().out
    assert '<option value="Basic">Basic</option>' in out
    assert '<option value="Enterprise">Enterprise</option>' in out


def test_datasource_verify(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = str(EXAMPLES_DIR / "mdxform.yaml")
    main(["datasource", "--config", config, "--verify", "--in", str(EXAMPLES_DIR / "contact.mdx")])
    assert "are registered" in capsys.readouterr().out

    source = _write(tmp_path / "form.mdx", '@select name="c" source="/api/colors"\n')
    with pytest.raises(SystemExit) as excinfo:
        main(["datasource", "--config", config, "--verify", "--in", str(source)])
    assert excinfo.value.code == 1
    assert "/api/colors" in capsys.readouterr().err


def test_load_config_validates(tmp_path: Path) -> None:
    good = _write(tmp_path / "good.yaml", "escape: true\n")
    assert load_config(good).escape is True
    assert load_config(good).strict is False

    empty = _write(tmp_path / "empty.yaml", "")
    assert load_config(empty).datasources == {}

    with pytest.raises(SystemExit):
        load_config(_write(tmp_path / "list.yaml", "- a\n- b\n"))
    with pytest.raises(SystemExit):
        load_config(_write(tmp_path / "typo.yaml", "stritc: true\n"))
    with pytest.raises(SystemExit):
        load_config(tmp_path / "missing.yaml")


def test_config_file_and_flags_combine(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = _write(tmp_path / "mdxform.yaml", "escape: true\n")
    source = _write(tmp_path / "form.mdx", '@submit label="<b>Go</b>"\n@endform\n')

    main(["render", "--in", str(source), "--config", str(config)])
    assert "&lt;b&gt;" in capsys.readouterr().out

    with pytest.raises(SystemExit):
        main(["render", "--in", str(source), "--config", str(config), "--strict"])


def test_datasource_verify_requires_input() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["datasource", "--config", str(EXAMPLES_DIR / "mdxform.yaml"), "--verify"])

    assert "--verify requires --in" in str(excinfo.value.code)


def test_datasource_without_source_or_verify_exits() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["datasource", "--config", str(EXAMPLES_DIR / "mdxform.yaml")])

    assert "--source is required" in str(excinfo.value.code)


def test_ast_dump_of_very_deep_nesting_exits_cleanly(tmp_path: Path) -> None:
    source = _write(tmp_path / "deep.mdx", '@group label="g"\n' * 3000)

    with pytest.raises(SystemExit) as excinfo:
        main(["ast", "--in", str(source)])

    assert "nested too deeply" in str(excinfo.value.code)


def test_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])

    assert excinfo.value.code == 0
    assert capsys.readouterr().out.startswith("mdxform ")
