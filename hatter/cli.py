import argparse
import asyncio
import json
import logging
import sys
from typing import Any, List, Optional, Tuple

import uvicorn

from hatter.automate.errors import CommandValidationError, ScrapeError
from hatter.automate.executor import CommandExecutor
from hatter.automate.generator import CommandScriptGenerator
from hatter.automate.scraper import FormScraper
from hatter.automate.validation import validate_commands
from hatter.config import ALLOW_EVALUATE, LOG_LEVEL, PORT, get_browser_config

logger = logging.getLogger(__name__)


def load_command_file(path: str) -> Tuple[Any, str, str]:
    """Read a command file: a bare list, or {testName, testDescription, commands}."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        return (
            data.get("commands"),
            data.get("testName") or "Untitled test",
            data.get("testDescription") or "",
        )
    return data, "Untitled test", ""


def _write_json(payload: Any, path: Optional[str]) -> None:
    text = json.dumps(payload, indent=4)
    if path:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        logger.info(f"Saved to: {path}")
    else:
        print(text)


def _generator(commands: List[Any], test_name: str, test_description: str) -> CommandScriptGenerator:
    return CommandScriptGenerator(
        commands,
        test_name=test_name,
        test_description=test_description,
        browser_config=get_browser_config(),
        allow_evaluate=ALLOW_EVALUATE,
    )


def run_command(args: argparse.Namespace) -> int:
    commands, test_name, test_description = load_command_file(args.input)
    validate_commands(commands)

    if args.script:
        with open(args.script, "w", encoding="utf-8") as f:
            f.write(_generator(commands, test_name, test_description).generate_script_content())
        logger.info(f"Script saved to: {args.script}")

    executor = CommandExecutor(browser_config=get_browser_config(), allow_evaluate=ALLOW_EVALUATE)
    report = asyncio.run(executor.run(commands))
    _write_json(report.model_dump(by_alias=True, exclude_none=True), args.report)

    if report.success:
        logger.info(f"✅  '{test_name}' passed in {report.execution_time}ms")
        return 0
    logger.error(f"❌  '{test_name}' failed: {report.error}")
    return 1


def compile_command(args: argparse.Namespace) -> int:
    commands, test_name, test_description = load_command_file(args.input)
    validate_commands(commands)

    script = _generator(commands, test_name, test_description).generate_script_content()
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(script)
        logger.info(f"Script saved to: {args.output}")
    else:
        print(script)
    return 0


def scrape_command(args: argparse.Namespace) -> int:
    scraper = FormScraper(browser_config=get_browser_config())
    result = asyncio.run(scraper.scrape(args.url))
    _write_json(result.model_dump(by_alias=True, exclude_none=True), args.output)
    return 0


def serve_command(args: argparse.Namespace) -> int:
    uvicorn.run("hatter.main:app", host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run, compile and bootstrap browser automation tests")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Execute a command file in a browser")
    run_parser.add_argument("input", help="Path to the command JSON file")
    run_parser.add_argument("--script", "-s", help="Also write the compiled script to this path")
    run_parser.add_argument("--report", "-r", help="Write the execution report to this path")
    run_parser.set_defaults(handler=run_command)

    compile_parser = subparsers.add_parser("compile", help="Compile a command file to a standalone script")
    compile_parser.add_argument("input", help="Path to the command JSON file")
    compile_parser.add_argument("--output", "-o", help="Output path for the generated script")
    compile_parser.set_defaults(handler=compile_command)

    scrape_parser = subparsers.add_parser("scrape", help="List the form fields of a page")
    scrape_parser.add_argument("url", help="Page URL, including http:// or https://")
    scrape_parser.add_argument("--output", "-o", help="Output path for the field inventory")
    scrape_parser.set_defaults(handler=scrape_command)

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=PORT)
    serve_parser.set_defaults(handler=serve_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = build_parser().parse_args(argv)
    try:
        return args.handler(args)
    except CommandValidationError as e:
        logger.error(f"Invalid command file {args.input}: {e}")
        return 2
    except ScrapeError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
