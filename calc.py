import argparse
import asyncio
import sys
from pathlib import Path

from calc.calc_config import CalcConfig
from calc.calc_datatypes import ConfigError
from calc.calc_printer import Printer
from calc.calc_runtime import LineRunner

# A basic awaitable input prompt.
async def ainput(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return await loop.run_in_executor(None, sys.stdin.readline)

def print_diagnostics(side_effects, skip_first_error=False):
    for effect in side_effects:
        if effect.get('topics') != ['stderr']:
            continue
        # The first failure is printed separately, with its location.
        if skip_first_error and effect.get('level') == 'error':
            skip_first_error = False
            continue
        print(effect.get('message', ''), file=sys.stderr)

async def run_script_file(file_path: str, config: CalcConfig):
    """Run a file of instructions and print the final accumulator."""
    runner = LineRunner(config)
    printer = Printer(config.precision, config.result_template)
    p = Path(file_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    result = runner.handle_script(source)
    print_diagnostics(result.side_effects, skip_first_error=result.status == 'error')
    print(printer.render(result.value))
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        raise SystemExit(1)

def parse_args(argv):
    parser = argparse.ArgumentParser(prog="calc", description="Accumulator calculator.")
    parser.add_argument("script", nargs="?", help="file of instructions to run")
    parser.add_argument("--config", help="YAML config file")
    return parser.parse_args(argv)

async def main(argv=None):
    """Run a script file when provided, otherwise start the interactive REPL."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        config = CalcConfig.load(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)

    if args.script:
        await run_script_file(args.script, config)
        return

    print("calc REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit, 'reset' to start over.")

    runner = LineRunner(config)
    printer = Printer(config.precision, config.result_template)

    while True:
        try:
            raw = await ainput(config.prompt)
            if raw == "":
                raise EOFError
            line = raw.rstrip("\r\n")

            if not line.strip():
                continue
            if line.strip() == "exit":
                break
            if line.strip() == "reset":
                print(printer.render(runner.reset()))
                continue

            result = runner.handle_line(line)
            print_diagnostics(result.side_effects)
            print(printer.render(result.value))

        except EOFError:
            print("\nExiting.")
            break

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting.")
