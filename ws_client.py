import asyncio
import json
import sys

import websockets


async def run(seconds: float = 10.0):
    uri = "ws://localhost:8000/transcribe"
    async with websockets.connect(uri, close_timeout=2) as ws:
        await ws.send(json.dumps({"type": "start"}))
        print("Sent start")

        loop = asyncio.get_running_loop()
        stop_at = loop.time() + seconds
        stop_sent = False

        while True:
            timeout = None if stop_sent else max(stop_at - loop.time(), 0)
            try:
                raw = await asyncio.wait_for(ws.recv(), timeout=timeout)
            except asyncio.TimeoutError:
                await ws.send(json.dumps({"type": "stop"}))
                stop_sent = True
                print("Sent stop, waiting for session end...")
                continue

            msg = json.loads(raw)
            if msg.get("type") == "error":
                print(f"Error: {msg['detail']}")
                break

            snap = msg["snapshot"]
            print(f"[{msg['notification']}] {snap['state']}: {snap['final_text']}|{snap['interim_text']}")
            if snap["last_error"]:
                print(f"  last error: {snap['last_error']}")
            if msg["notification"] in ("session_ended", "session_error"):
                break

    print("\nDone.")


if __name__ == "__main__":
    duration = float(sys.argv[1]) if len(sys.argv) > 1 else 10.0
    try:
        asyncio.run(run(duration))
    except websockets.exceptions.ConnectionClosedError:
        pass
