"""
Quick sanity run: a short burst of uploads against a local endpoint.
Run: uv run examples/upload_burst.py
"""
import asyncio
import os

from downpour import LoadRunner, LoadTestConfig, render_report


async def main():
    cfg = LoadTestConfig(
        url=os.getenv("UPLOAD_URL", "http://localhost:8080/api/v1/faceLists/1/faces/bulk"),
        corpus_path=os.getenv("UPLOAD_DIR", "images"),
        total_requests=50,
        concurrency=5,
        request_timeout_s=float(os.getenv("HTTP_REQUEST_TIMEOUT_S", "10")),
        container_id=os.getenv("TARGET_CONTAINER"),
    )
    result = await LoadRunner(cfg).run()
    print()
    print(render_report(result, sampled_memory=cfg.container_id is not None))

if __name__ == "__main__":
    asyncio.run(main())
