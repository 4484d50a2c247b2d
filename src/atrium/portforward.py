"""Forward workspace ports to localhost through ``kubectl port-forward``."""

from __future__ import annotations

from typing import Sequence

from . import exec as exec_util
from .services.errors import ExternalCommandFailedError


def port_forward_argv(
    pod: str,
    ports: Sequence[str],
    *,
    namespace: str,
    key_file: str | None = None,
    cert_file: str | None = None,
) -> list[str]:
    """Build the kubectl invocation for a port-forward.

    Example:
        >>> port_forward_argv("ws-1", ["8080:80"], namespace="team")
        ['kubectl', 'port-forward', '--namespace', 'team', 'ws-1', '8080:80']
    """
    argv = ["kubectl", "port-forward", "--namespace", namespace]
    if key_file:
        argv.extend(["--client-key", key_file])
    if cert_file:
        argv.extend(["--client-certificate", cert_file])
    argv.append(pod)
    argv.extend(ports)
    return argv


def run_port_forward(
    pod: str,
    ports: Sequence[str],
    *,
    namespace: str,
    key_file: str | None = None,
    cert_file: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> None:
    """Run ``kubectl port-forward`` in the foreground until it exits.

    Raises:
        ExternalCommandFailedError: kubectl is missing or exits non-zero.
    """
    request = exec_util.CommandRequest(
        argv=tuple(
            port_forward_argv(
                pod, ports, namespace=namespace, key_file=key_file, cert_file=cert_file
            )
        ),
        capture_output=False,
        text=False,
    )
    try:
        exec_util.run_checked(request, runner=runner)
    except exec_util.CommandExecutionError as exc:
        raise ExternalCommandFailedError(
            str(exc), recovery_hint="install kubectl and check the pod name"
        ) from exc
