from __future__ import annotations

VDA_EXCLUDED_COMPONENTS = (
    "Personal vDisk",
    "Citrix Telemetry Service",
    "Citrix Personalization for App-V - VDA",
)
VDA_INCLUDED_COMPONENTS = (
    "Citrix Profile Management",
    "Citrix Profile Management WMI Plug-in",
    "Machine Identity Service",
)


def _quoted_list(items: tuple[str, ...]) -> str:
    return ",".join(f'"{item}"' for item in items)


def vda_arguments(connectors: list[str]) -> str:
    return " ".join(
        [
            "/quiet",
            "/noreboot",
            "/noresume",
            "/virtualmachine",
            "/components VDA",
            f'/controllers "{" ".join(connectors)}"',
            "/enable_hdx_ports",
            "/enable_hdx_udp_ports",
            "/enable_real_time_transport",
            "/enable_remote_assistance",
            f"/exclude {_quoted_list(VDA_EXCLUDED_COMPONENTS)}",
            f"/includeadditional {_quoted_list(VDA_INCLUDED_COMPONENTS)}",
        ]
    )


def wem_arguments(connectors: list[str]) -> str:
    return f"/quiet Cloud=1 CloudConnectorList={','.join(connectors)}"
