import pytest

from go_diagnostics.check import build_invocations, check, run_tool
from go_diagnostics.config import Settings
from go_diagnostics.paths import PathTranslator
from go_diagnostics.run_output import ExecResult, ToolInvocation


def _settings(**overrides) -> Settings:
    return Settings(gopath="/home/me/go", **overrides)


class TestBuildInvocations:
    def test_default_plan(self):
        """Build, lint and vet run with their own severity and stream."""
        translator = PathTranslator("/project")

        invocations = build_invocations("/project/app/main.go", _settings(), translator)

        build, lint, vet = invocations
        assert build.command == "go"
        assert build.args[0] == "build"
        assert build.args[-3:] == ["-tags", "", "."]
        assert (build.severity, build.use_stderr) == ("error", True)
        assert lint.command == "golint"
        assert lint.args == ["/project/app/main.go"]
        assert (lint.severity, lint.use_stderr) == ("warning", False)
        assert vet.args == ["vet", "."]
        assert (vet.severity, vet.use_stderr) == ("warning", True)
        assert {inv.cwd for inv in invocations} == {"/project/app"}

    def test_test_file_builds_test_binary(self):
        translator = PathTranslator("/project")

        build = build_invocations(
            "/project/app/main_test.go", _settings(build_tags="integration"), translator
        )[0]

        assert build.args[:5] == ["test", "-copybinary", "-o", build.args[3], "-c"]
        assert build.args[-3:] == ["-tags", "integration", "."]

    def test_other_lint_tool_gets_only_flags(self):
        translator = PathTranslator("/project")
        settings = _settings(
            build_on_save=False,
            vet_on_save=False,
            lint_tool="gometalinter",
            lint_flags=["--fast"],
        )

        (lint,) = build_invocations("/project/main.go", settings, translator)

        assert lint.command == "gometalinter"
        assert lint.args == ["--fast"]

    def test_paths_translated_for_execution(self):
        translator = PathTranslator("/home/me/project", "/go/src/project")
        settings = _settings(build_on_save=False, vet_on_save=False)

        (lint,) = build_invocations("/home/me/project/main.go", settings, translator)

        assert lint.cwd == "/go/src/project"
        assert lint.args == ["/go/src/project/main.go"]


class TestRunTool:
    @pytest.mark.asyncio
    async def test_parses_selected_stream_despite_failure(self, fake_runner, status):
        runner = fake_runner(
            {
                "go": ExecResult(
                    stdout="a.go:1: not this one",
                    stderr="main.go:4:2: undefined: x\n",
                    return_code=2,
                )
            }
        )
        invocation = ToolInvocation("go", ["build"], "/project", "error", use_stderr=True)

        outcome = await run_tool(runner, invocation, status=status)

        assert [d.message for d in outcome.diagnostics] == ["undefined: x"]
        assert outcome.diagnostics[0].file == "/project/main.go"
        assert "/project/main.go:4: undefined: x" in status.lines

    @pytest.mark.asyncio
    async def test_translates_paths_back(self, fake_runner, status):
        runner = fake_runner({"golint": ExecResult(stdout="main.go:1: bad", return_code=1)})
        translator = PathTranslator("/home/me/project", "/go/src/project")
        invocation = ToolInvocation("golint", [], "/go/src/project", "warning", use_stderr=False)

        outcome = await run_tool(runner, invocation, translator.to_local, status=status)

        assert outcome.diagnostics[0].file == "/home/me/project/main.go"

    @pytest.mark.asyncio
    async def test_missing_tool(self, fake_runner, status):
        runner = fake_runner({"golint": ExecResult(tool_missing=True)})
        invocation = ToolInvocation(
            "golint", [], "/project", "warning", use_stderr=False, tool_name="golint"
        )

        outcome = await run_tool(runner, invocation, status=status)

        assert outcome.tool_missing is True
        assert outcome.diagnostics == []


class TestCheck:
    @pytest.mark.asyncio
    async def test_missing_lint_does_not_hide_vet(self, fake_runner, status, tmp_path):
        """A sibling check's results survive a missing tool."""
        source = tmp_path / "main.go"
        source.write_text("package main\n")
        runner = fake_runner(
            {
                "golint": ExecResult(tool_missing=True),
                "go": ExecResult(stderr="main.go:3:1: unreachable code\n", return_code=1),
            }
        )

        report = await check(
            str(source),
            _settings(build_on_save=False),
            runner,
            PathTranslator(str(tmp_path)),
            status=status,
        )

        assert report.missing_tools == ["golint"]
        assert [d.message for d in report.diagnostics] == ["unreachable code"]
        assert report.diagnostics[0].severity == "warning"
        assert report.failures == []

    @pytest.mark.asyncio
    async def test_transport_failure_is_reported(self, fake_runner, status, tmp_path):
        source = tmp_path / "main.go"
        source.write_text("package main\n")
        runner = fake_runner(
            {
                "go": ExecResult(error="daemon unreachable"),
                "golint": ExecResult(stdout="main.go:1:1: comment missing\n", return_code=0),
            }
        )

        report = await check(
            str(source), _settings(), runner, PathTranslator(str(tmp_path)), status=status
        )

        assert len(report.diagnostics) == 1
        assert report.diagnostics[0].file == str(tmp_path / "main.go")
        assert report.failures == ["go: daemon unreachable", "go: daemon unreachable"]

    @pytest.mark.asyncio
    async def test_nothing_enabled(self, fake_runner, status, tmp_path):
        source = tmp_path / "main.go"
        source.write_text("package main\n")
        runner = fake_runner({})
        settings = _settings(build_on_save=False, lint_on_save=False, vet_on_save=False)

        report = await check(str(source), settings, runner, PathTranslator(str(tmp_path)), status=status)

        assert report.diagnostics == []
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_clears_status_log(self, fake_runner, status, tmp_path):
        source = tmp_path / "main.go"
        source.write_text("package main\n")
        status.append_line("stale")
        settings = _settings(build_on_save=False, lint_on_save=False, vet_on_save=False)

        await check(str(source), settings, fake_runner({}), PathTranslator(str(tmp_path)), status=status)

        assert "stale" not in status.lines
