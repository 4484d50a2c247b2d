from types import SimpleNamespace
from unittest.mock import patch

from typer.testing import CliRunner

import atrium.cli as cli

runner = CliRunner()


def test_port_forward_invokes_command_with_arguments() -> None:
    captured: dict[str, SimpleNamespace] = {}

    def fake_port_forward(args: SimpleNamespace) -> None:
        captured["args"] = args

    with patch("atrium.cli.port_forward_cmd.port_forward", fake_port_forward):
        result = runner.invoke(
            cli.app,
            [
                "port-forward",
                "ws-1",
                "8080:80",
                "9000",
                "--namespace",
                "team",
                "--key-file",
                "client.key",
            ],
        )

    assert result.exit_code == 0
    args = captured["args"]
    assert args.pod == "ws-1"
    assert args.ports == ["8080:80", "9000"]
    assert args.namespace == "team"
    assert args.key_file == "client.key"
    assert args.cert_file is None


def test_port_forward_command_runs_kubectl() -> None:
    calls: dict[str, object] = {}

    def fake_run(pod: str, ports: list[str], **kwargs: object) -> None:
        calls["pod"] = pod
        calls["ports"] = ports
        calls["kwargs"] = kwargs

    with patch("atrium.portforward.run_port_forward", fake_run):
        result = runner.invoke(cli.app, ["port-forward", "ws-1", "8080:80"])

    assert result.exit_code == 0, result.output
    assert calls == {
        "pod": "ws-1",
        "ports": ["8080:80"],
        "kwargs": {"namespace": "default", "key_file": None, "cert_file": None},
    }
