import pytest

from go_diagnostics.container import reset_container
from go_diagnostics.run_output import ExecResult
from go_diagnostics.status import StatusLog


class FakeRunner:
    """Runner returning canned results keyed by command name."""

    def __init__(self, results: dict[str, ExecResult | Exception]) -> None:
        self.results = results
        self.calls: list[tuple[str, list[str], str]] = []

    async def run(self, command, args, cwd, stdin=None, token=None) -> ExecResult:
        self.calls.append((command, list(args), cwd))
        result = self.results.get(command, ExecResult(return_code=0))
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_runner():
    def make(results: dict[str, ExecResult | Exception]) -> FakeRunner:
        return FakeRunner(results)

    return make


@pytest.fixture
def status():
    return StatusLog()


@pytest.fixture(autouse=True)
def fresh_container():
    reset_container()
    yield
    reset_container()
