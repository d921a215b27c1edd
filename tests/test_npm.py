"""Tests for the npm command: package.json scripts and the package manager."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from stacksh.commands.npm import format_progress
from stacksh.services import Progress

from .fakes import FakePackageManager, make_shell, run_line

SCRIPTS = {
    "prebuild": "echo pre",
    "build": "echo building",
    "prestart": "echo warm",
    "start": "echo go",
    "stop": "echo halt",
    "pretest": "false",
    "test": "echo testing",
}


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "package.json").write_text(json.dumps({"name": "demo", "scripts": SCRIPTS}))
    return tmp_path


class TestFormatProgress:
    def test_full(self) -> None:
        assert format_progress(Progress("download", "left-pad", "1.3.0", 0.5)) == "[download] left-pad @1.3.0 (50%)"

    def test_partial(self) -> None:
        assert format_progress(Progress(stage="resolve")) == "[resolve]"
        assert format_progress(Progress(name="x", progress=1.0)) == "x (100%)"


class TestScripts:
    @pytest.mark.asyncio
    async def test_run_with_prescript(self, project: Path) -> None:
        shell, terminal = make_shell(project)
        out = await run_line(shell, terminal, "npm run build")
        assert out == (
            "\r\n> prebuild\r\n> echo pre\r\npre\r\n"
            "> build\r\n> echo building\r\nbuilding\r\n" + shell.prompt()
        )
        assert shell.router.last_exit_code == 0

    @pytest.mark.asyncio
    async def test_run_lists_scripts(self, project: Path) -> None:
        shell, terminal = make_shell(project)
        out = await run_line(shell, terminal, "npm run")
        assert "Scripts available:\r\n  prebuild\r\n  build\r\n" in out

    @pytest.mark.asyncio
    async def test_missing_script(self, project: Path) -> None:
        shell, terminal = make_shell(project)
        out = await run_line(shell, terminal, "npm run deploy")
        assert "npm ERR! missing script: deploy\r\n" in out
        assert shell.router.last_exit_code == 1

    @pytest.mark.asyncio
    async def test_failing_prescript_stops(self, project: Path) -> None:
        shell, terminal = make_shell(project)
        out = await run_line(shell, terminal, "npm test")
        assert "> pretest\r\n> false\r\n" in out
        assert "testing" not in out
        assert shell.router.last_exit_code == 1

    @pytest.mark.asyncio
    async def test_restart_falls_back_to_stop_then_start(self, project: Path) -> None:
        shell, terminal = make_shell(project)
        out = await run_line(shell, terminal, "npm restart")
        assert out.index("halt") < out.index("warm") < out.index("go\r\n")

    @pytest.mark.asyncio
    async def test_nested_prescripts(self, tmp_path: Path) -> None:
        scripts = {"preprestart": "echo first", "prestart": "echo second", "start": "echo third"}
        (tmp_path / "package.json").write_text(json.dumps({"scripts": scripts}))
        shell, terminal = make_shell(tmp_path)
        out = await run_line(shell, terminal, "npm start")
        assert out.index("first") < out.index("second") < out.index("third")

    @pytest.mark.asyncio
    async def test_script_chain_and_alias(self, tmp_path: Path) -> None:
        scripts = {"check": "greet && echo done"}
        (tmp_path / "package.json").write_text(json.dumps({"scripts": scripts}))
        shell, terminal = make_shell(tmp_path, config_text="[alias]\ngreet = echo hi\n")
        out = await run_line(shell, terminal, "npm run check")
        assert "hi\r\ndone\r\n" in out

    @pytest.mark.asyncio
    async def test_missing_package_json(self, tmp_path: Path) -> None:
        shell, terminal = make_shell(tmp_path)
        out = await run_line(shell, terminal, "npm start")
        assert "npm: package.json not found\r\n" in out

    @pytest.mark.asyncio
    async def test_bad_package_json(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{not json")
        shell, terminal = make_shell(tmp_path)
        out = await run_line(shell, terminal, "npm start")
        assert "npm: failed to parse package.json\r\n" in out


class TestPackageManager:
    @pytest.mark.asyncio
    async def test_install_dev(self, tmp_path: Path) -> None:
        packages = FakePackageManager()
        shell, terminal = make_shell(tmp_path, packages=packages)
        out = await run_line(shell, terminal, "npm install -D left-pad")
        assert packages.calls == [("install", shell.services.fs.cwd, True, ("left-pad",))]
        assert "[download] left-pad @1.3.0 (50%)\r\n" in out

    @pytest.mark.asyncio
    async def test_install_alias(self, tmp_path: Path) -> None:
        packages = FakePackageManager()
        shell, terminal = make_shell(tmp_path, packages=packages)
        await run_line(shell, terminal, "npm i react")
        assert packages.calls == [("install", shell.services.fs.cwd, False, ("react",))]

    @pytest.mark.asyncio
    async def test_uninstall(self, tmp_path: Path) -> None:
        packages = FakePackageManager()
        shell, terminal = make_shell(tmp_path, packages=packages)
        out = await run_line(shell, terminal, "npm rm left-pad")
        assert "[remove] left-pad\r\n" in out

    @pytest.mark.asyncio
    async def test_audit(self, tmp_path: Path) -> None:
        shell, terminal = make_shell(tmp_path, packages=FakePackageManager())
        out = await run_line(shell, terminal, "npm audit")
        assert '"vulnerabilities": 0' in out

    @pytest.mark.asyncio
    async def test_unknown(self, tmp_path: Path) -> None:
        shell, terminal = make_shell(tmp_path, packages=FakePackageManager())
        out = await run_line(shell, terminal, "npm publish")
        assert "Unknown packages command: publish\r\n" in out

    @pytest.mark.asyncio
    async def test_missing_collaborator(self, tmp_path: Path) -> None:
        shell, terminal = make_shell(tmp_path)
        out = await run_line(shell, terminal, "npm install")
        assert "npm: package manager is not available in this session\r\n" in out
