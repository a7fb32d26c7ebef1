import asyncio
import sys

import httpx

from pipefn import ExecutionResult, Runner

# A basic awaitable input prompt.
async def ainput(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return await loop.run_in_executor(None, sys.stdin.readline)

async def render(value) -> str:
    """Short, printable form of a pipeline value."""
    match value:
        case None:
            return "none"
        case str():
            return value
        case bytes() | bytearray():
            return f"<{len(value)} bytes>"
        case httpx.Response():
            return f"<response {value.status_code} {value.url}>"
        case list() | int() | float():
            return repr(value)
    if hasattr(value, "__aiter__"):
        total = 0
        async for chunk in value:
            total += len(chunk)
        return f"<stream of {total} bytes>"
    return repr(value)

def split_chain(line: str) -> list[str]:
    return [s.strip() for s in line.split("|") if s.strip()]

async def report(result: ExecutionResult) -> bool:
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        return False
    print(await render(result.value))
    return True

async def run_chain(steps: list[str]):
    """Run the steps given on the command line and exit with appropriate status."""
    runner = Runner()
    ok = await report(await runner.handle_chain(steps))
    if not ok:
        raise SystemExit(1)

async def main():
    """Run a chain from argv when provided, otherwise start the interactive REPL."""
    if len(sys.argv) > 1:
        await run_chain(sys.argv[1:])
        return

    print("pipefn REPL v0.1")
    print("Steps are separated by '|', e.g.  \"hello\" | Digest.sha256")
    print("Type 'exit' or press Ctrl+D to quit.")

    while True:
        try:
            raw = await ainput(">> ")
            if raw == "":
                raise EOFError
            line = raw.strip()

            if not line:
                continue
            if line == "exit":
                break

            # A fresh runner per line, as a server would build one per request
            await report(await Runner().handle_chain(split_chain(line)))

        except EOFError:
            print("\nExiting.")
            break
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting.")
