import asyncio

from http_jobtype.errors import JobFailedError
from http_jobtype.http_job import HttpJob
from status_server import StatusServer


async def status_changed(state):
    print(f"Status changed to: {state.status.value} after {state.attempts} checks")


async def main():
    PORT = 8000
    server = StatusServer(
        status_responses=[(503, "busy"), (200, {"code": 0}), (200, {"code": 1})]
    )
    await server.start(port=PORT)
    print(f"Server started on http://localhost:{PORT}")

    props = {
        "url": f"http://localhost:{PORT}/submit",
        "method": "POST",
        "body": "IDS=202006200213804",
        "headers": "Content-Type: application/x-www-form-urlencoded; charset=utf-8",
        "successEval": "$[?(@.code==1)]",
        "status.url": f"http://localhost:{PORT}/status",
        "status.successEval": "$[?(@.code==1)]",
        "status.failEval": "$[?(@.code==-1)]",
        "status.interval": "500",
    }
    job = HttpJob("httpTest", props, on_status_change=status_changed)

    try:
        result = await job.run()
        print(f"Final status: {result.poll.status.value}")
        print(f"Total time: {result.elapsed_time:.6f}s")
    except JobFailedError as e:
        print(f"Job failed: {e}")
    finally:
        await server.stop()


if __name__ == "__main__":
    asyncio.run(main())
