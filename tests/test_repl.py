import importlib.util
import sys
from pathlib import Path
import uuid
import pytest

def _load_repl_module():
    """Dynamically load the top-level calc.py (REPL) as a module with a unique name."""
    repl_path = Path(__file__).resolve().parents[1] / "calc.py"
    mod_name = f"calc_repl_for_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, str(repl_path))
    mod = importlib.util.module_from_spec(spec)
    sys.modules[mod_name] = mod
    assert spec.loader is not None
    spec.loader.exec_module(mod)
    return mod

@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.delenv("CALC_CONFIG", raising=False)
    monkeypatch.delenv("CALC_DEBUG", raising=False)
    monkeypatch.chdir(tmp_path)

def _feed(monkeypatch, repl, lines):
    it = iter(lines)
    async def fake_ainput(prompt: str) -> str:
        return next(it)
    monkeypatch.setattr(repl, "ainput", fake_ainput)

@pytest.mark.asyncio
async def test_repl_exit_immediately(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["exit"])

    await repl.main([])
    out = capsys.readouterr().out
    assert "calc REPL v0.1" in out
    assert "Type 'exit' or press Ctrl+D to quit" in out

@pytest.mark.asyncio
async def test_repl_prints_accumulator(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["5\n", "(+) 1 2\n", "_\n", "exit\n"])

    await repl.main([])
    out, err = capsys.readouterr()
    assert out.splitlines()[2:] == ["5", "8", "-8"]
    assert err == ""

@pytest.mark.asyncio
async def test_repl_errors_print_to_stderr(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["7\n", "SQX\n", "exit\n"])

    await repl.main([])
    out, err = capsys.readouterr()
    assert "Unknown operation SQX" in err
    # Value unchanged after the failed line
    assert out.splitlines()[2:] == ["7", "7"]

@pytest.mark.asyncio
async def test_repl_reset(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["5\n", "reset\n", "exit\n"])

    await repl.main([])
    out = capsys.readouterr().out
    assert out.splitlines()[2:] == ["5", "0"]

@pytest.mark.asyncio
async def test_repl_eof_quits(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, [""])

    await repl.main([])
    out = capsys.readouterr().out
    assert "Exiting." in out

@pytest.mark.asyncio
async def test_repl_uses_config(monkeypatch, capsys, tmp_path):
    repl = _load_repl_module()
    cfg = tmp_path / "c.yaml"
    cfg.write_text("initial: 2\nresult_template: '= {{value}}'\n")
    _feed(monkeypatch, repl, ["*3\n", "exit\n"])

    await repl.main(["--config", str(cfg)])
    out = capsys.readouterr().out
    assert "= 6" in out

@pytest.mark.asyncio
async def test_repl_bad_config_exits(capsys, tmp_path):
    repl = _load_repl_module()
    cfg = tmp_path / "c.yaml"
    cfg.write_text("colour: red\n")

    with pytest.raises(SystemExit) as exc:
        await repl.main(["--config", str(cfg)])
    assert exc.value.code == 1
    assert "unknown config keys" in capsys.readouterr().err

@pytest.mark.asyncio
async def test_run_script_file(capsys, tmp_path):
    repl = _load_repl_module()
    script = tmp_path / "prog.calc"
    script.write_text("5\n(*) 2 3\n")

    await repl.main([str(script)])
    out = capsys.readouterr().out
    assert out.strip() == "30"

@pytest.mark.asyncio
async def test_run_script_file_with_error(capsys, tmp_path):
    repl = _load_repl_module()
    script = tmp_path / "prog.calc"
    script.write_text("5\n+\n")

    with pytest.raises(SystemExit) as exc:
        await repl.main([str(script)])
    assert exc.value.code == 1
    out, err = capsys.readouterr()
    assert out.strip() == "5"
    assert "Error on line 2" in err
    assert "No argument for a binary operation" in err

@pytest.mark.asyncio
async def test_run_missing_script_file(capsys, tmp_path):
    repl = _load_repl_module()
    with pytest.raises(SystemExit) as exc:
        await repl.main([str(tmp_path / "missing.calc")])
    assert exc.value.code == 1
    assert "file not found" in capsys.readouterr().err

@pytest.mark.asyncio
async def test_run_script_file_prints_each_error_once(capsys, tmp_path):
    repl = _load_repl_module()
    script = tmp_path / "prog.calc"
    script.write_text("5\n/0\nSQX\n")

    with pytest.raises(SystemExit):
        await repl.main([str(script)])
    err = capsys.readouterr().err
    assert err.count("Bad right argument for division: 0") == 1
    assert "Error on line 2: Bad right argument for division: 0" in err
    # Later failures are still reported
    assert err.count("Unknown operation SQX") == 1
