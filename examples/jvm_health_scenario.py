"""End-to-end scenario against a live Jolokia agent."""

from __future__ import annotations

import asyncio
import os
from typing import Any

from jolokia_client import (
    AsyncHttpTransport,
    ConnectionDefaults,
    JolokiaClient,
    NotFoundError,
    Request,
    Response,
    TransportError,
)

DEFAULTS = ConnectionDefaults.from_env()
BASE_URL = os.getenv("JOLOKIA_URL", "http://localhost:8778/jolokia/")
LOG_LEVEL = os.getenv("JOLOKIA_CLIENT_LOG", "info")


def log_section(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def ensure_agent(client: JolokiaClient) -> None:
    result = client.execute_safe(client.request("version"))
    if not result.ok:
        raise TransportError(f"Cannot reach {BASE_URL}: {result.error}")


def megabytes(value: Any) -> str:
    if not isinstance(value, (int, float)):
        return repr(value)
    return f"{value / (1024 * 1024):.1f} MiB"


def callback_dispatch(client: JolokiaClient) -> None:
    """Lower-level API: build a Request and let callbacks report the outcome."""

    def on_success(response: Response, request: Request) -> None:
        print(f"→ {request.attribute()} = {response.value()} (status {response.status()})")

    def on_error(request: Request, options: dict[str, Any]) -> None:
        print(f"→ {request.mbean()} failed: {options['error_message']}")

    for attribute in ("Uptime", "StartTime"):
        request = Request({"type": "read", "mbean": "java.lang:type=Runtime", "attribute": attribute})
        request.dispatch(
            {"on_success": on_success, "on_error": on_error},
            dispatcher=client.dispatcher,
        )


async def concurrent_reads() -> None:
    transport = AsyncHttpTransport()
    client = JolokiaClient(BASE_URL, transport=transport, defaults=DEFAULTS, log_level=LOG_LEVEL)
    try:
        requests = [
            client.request("read", mbean="java.lang:type=Threading", attribute="ThreadCount"),
            client.request("read", mbean="java.lang:type=ClassLoading", attribute="LoadedClassCount"),
            client.request("read", mbean="java.lang:type=OperatingSystem", attribute="SystemLoadAverage"),
        ]
        responses = await asyncio.gather(*(client.execute_async(r) for r in requests), return_exceptions=True)
        for request, response in zip(requests, responses):
            if isinstance(response, Exception):
                print(f"→ {request.attribute()}: {response}")
            else:
                print(f"→ {request.attribute()}: {response.value()}")
    finally:
        await transport.aclose()


def main() -> None:
    log_section("Jolokia Python Client: JVM Health Scenario")
    print(f"Connecting to {BASE_URL}")
    client = JolokiaClient(BASE_URL, defaults=DEFAULTS, log_level=LOG_LEVEL)
    ensure_agent(client)

    log_section("Step 1: Agent Version")
    version = client.version()
    print(f"→ agent {version.agent_version()} speaking protocol {version.protocol_version()}")

    log_section("Step 2: Heap Usage")
    heap = client.read("java.lang:type=Memory", "HeapMemoryUsage")
    usage = heap.value() or {}
    print(f"→ used {megabytes(usage.get('used'))} of {megabytes(usage.get('max'))}")

    log_section("Step 3: Garbage Collectors")
    collectors = client.search("java.lang:type=GarbageCollector,*").value() or []
    for mbean in collectors:
        count = client.read(mbean, "CollectionCount").value()
        print(f"→ {mbean}: {count} collections")

    log_section("Step 4: Trigger GC")
    client.exec("java.lang:type=Memory", "gc")
    after = client.read("java.lang:type=Memory", "HeapMemoryUsage", path="used").value()
    print(f"→ heap after gc: {megabytes(after)}")

    log_section("Step 5: Missing MBean")
    try:
        client.read("com.example:type=DoesNotExist", "Anything")
    except NotFoundError as exc:
        print(f"→ status {exc.status}: {exc}")

    log_section("Step 6: Callback Dispatch")
    callback_dispatch(client)

    log_section("Step 7: Concurrent Reads (asyncio)")
    asyncio.run(concurrent_reads())

    print("→ Scenario complete, closing client")
    client.close()


if __name__ == "__main__":
    main()
