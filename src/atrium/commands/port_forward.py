"""Forward ports from a workspace pod."""

from __future__ import annotations

from .. import portforward


def port_forward(args: object) -> None:
    portforward.run_port_forward(
        str(getattr(args, "pod")),
        list(getattr(args, "ports", []) or []),
        namespace=str(getattr(args, "namespace", "default") or "default"),
        key_file=getattr(args, "key_file", None),
        cert_file=getattr(args, "cert_file", None),
    )
